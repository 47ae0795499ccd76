"""Business logic for quiz sessions shared between the widget API and tools."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from threading import Lock
from uuid import uuid4

from quiz_widget.constants.quiz_constants import MAX_SESSIONS, SESSION_IDLE_TIMEOUT_SECONDS
from quiz_widget.core.models import Question, QuizData
from quiz_widget.core.quiz_session import Clock, QuizSession, utc_now
from quiz_widget.core.services.lifecycle import SaveHook, save_session
from quiz_widget.core.services.persistence import SaveResult
from quiz_widget.core.services.scoring import SessionSummary

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when a session id is unknown, ended or evicted."""


@dataclass(slots=True)
class WidgetSession:
    """A quiz session plus the view state the widget keeps around it."""

    session_id: str
    quiz: QuizData
    session: QuizSession
    last_access: datetime
    show_hint: bool = False


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Everything a presentation layer needs to redraw after a mutation."""

    session_id: str
    title: str
    description: str
    language: str
    question: Question
    current_index: int
    total_questions: int
    selected_option: int | None
    correct_option_index: int | None
    can_go_previous: bool
    can_go_next: bool
    is_last_question: bool
    show_hint: bool
    completed: bool
    summary: SessionSummary


class QuizManager:
    """Registry of isolated quiz sessions keyed by session id.

    A completed session is frozen: answering and navigating return the
    unchanged snapshot until the session is retaken. Sessions idle for longer
    than ``idle_timeout`` are dropped, and the least recently used one is
    evicted once ``max_sessions`` is reached.
    """

    def __init__(
        self,
        clock: Clock = utc_now,
        max_sessions: int = MAX_SESSIONS,
        idle_timeout: timedelta = timedelta(seconds=SESSION_IDLE_TIMEOUT_SECONDS),
    ) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self._lock = Lock()
        self._clock = clock
        self._max_sessions = max_sessions
        self._idle_timeout = idle_timeout
        self._sessions: dict[str, WidgetSession] = {}

    # --- Session registry ---

    def start_session(self, quiz: QuizData) -> str:
        session = QuizSession(quiz.questions, clock=self._clock)
        session_id = uuid4().hex
        with self._lock:
            self._prune(self._clock())
            self._sessions[session_id] = WidgetSession(
                session_id=session_id,
                quiz=quiz,
                session=session,
                last_access=self._clock(),
            )
        logger.info("Started session %s for quiz '%s' (%d questions)", session_id, quiz.title, quiz.question_count())
        return session_id

    def end_session(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)
        logger.info("Ended session %s", session_id)

    def has_session(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def get_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def get_snapshot(self, session_id: str) -> SessionSnapshot:
        with self._lock:
            return self._snapshot(self._get(session_id))

    # --- Session mutators ---

    def answer(self, session_id: str, option_index: int) -> SessionSnapshot:
        with self._lock:
            entry = self._get(session_id)
            if not entry.session.is_completed():
                entry.session.answer_current_question(option_index)
            return self._snapshot(entry)

    def go_previous(self, session_id: str) -> SessionSnapshot:
        with self._lock:
            entry = self._get(session_id)
            if not entry.session.is_completed() and entry.session.go_to_previous():
                entry.show_hint = False
            return self._snapshot(entry)

    def advance(self, session_id: str) -> SessionSnapshot:
        """Move forward, or complete the quiz when already on the last question."""
        with self._lock:
            entry = self._get(session_id)
            session = entry.session
            if session.is_completed():
                return self._snapshot(entry)
            if session.go_to_next():
                entry.show_hint = False
            elif session.is_last_question():
                session.complete()
                logger.info(
                    "Session %s completed: %d/%d in %s",
                    session_id,
                    session.calculate_score(),
                    session.get_total_questions(),
                    session.get_formatted_time(),
                )
            return self._snapshot(entry)

    def go_to(self, session_id: str, index: int) -> SessionSnapshot:
        with self._lock:
            entry = self._get(session_id)
            if not entry.session.is_completed() and entry.session.go_to_question(index):
                entry.show_hint = False
            return self._snapshot(entry)

    def toggle_hint(self, session_id: str) -> SessionSnapshot:
        with self._lock:
            entry = self._get(session_id)
            entry.show_hint = not entry.show_hint
            return self._snapshot(entry)

    def retake(self, session_id: str) -> SessionSnapshot:
        with self._lock:
            entry = self._get(session_id)
            entry.session.reset()
            entry.show_hint = False
            logger.info("Session %s restarted", session_id)
            return self._snapshot(entry)

    # --- Persistence ---

    def save(self, session_id: str, hook: SaveHook) -> SaveResult:
        """Hand the quiz and its answers to ``hook``; session state is untouched."""
        with self._lock:
            entry = self._get(session_id)
            quiz = entry.quiz
            answers = entry.session.get_answers()
        result = save_session(quiz, answers, hook)
        logger.info("Save for session %s: %s", session_id, "ok" if result.success else result.message)
        return result

    # --- Helpers ---

    def _get(self, session_id: str) -> WidgetSession:
        entry = self._sessions.get(session_id)
        if entry is None:
            raise SessionNotFoundError(session_id)
        entry.last_access = self._clock()
        return entry

    def _prune(self, now: datetime) -> None:
        """Drop idle sessions, then make room for one more. Caller holds the lock."""
        expired = [
            session_id
            for session_id, entry in self._sessions.items()
            if now - entry.last_access > self._idle_timeout
        ]
        for session_id in expired:
            del self._sessions[session_id]
        while len(self._sessions) >= self._max_sessions:
            oldest = min(self._sessions.values(), key=lambda entry: entry.last_access)
            del self._sessions[oldest.session_id]
            expired.append(oldest.session_id)
        if expired:
            logger.info("Evicted %d idle session(s)", len(expired))

    @staticmethod
    def _snapshot(entry: WidgetSession) -> SessionSnapshot:
        session = entry.session
        selected = session.get_current_answer()
        # Correct answer is only revealed once the current question is answered
        correct_index = session.get_correct_answer_index() if selected is not None else None
        return SessionSnapshot(
            session_id=entry.session_id,
            title=entry.quiz.title,
            description=entry.quiz.description,
            language=entry.quiz.language,
            question=session.get_current_question(),
            current_index=session.get_current_index(),
            total_questions=session.get_total_questions(),
            selected_option=selected,
            correct_option_index=correct_index,
            can_go_previous=session.can_go_previous(),
            can_go_next=session.can_go_next(),
            is_last_question=session.is_last_question(),
            show_hint=entry.show_hint,
            completed=session.is_completed(),
            summary=session.summarize(),
        )
