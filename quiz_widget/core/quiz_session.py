"""State machine for one user's traversal of a fixed question list.

A session is either in progress or completed. ``complete()`` is driven by the
caller: it is expected to be invoked once ``go_to_next()`` reports that no
forward move happened while ``is_last_question()`` is true. The session never
decides that on its own, so presentation code keeps full control over when
the results view appears.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

from quiz_widget.core.models import Question
from quiz_widget.core.services import scoring

Clock = Callable[[], datetime]
ChangeListener = Callable[["QuizSession"], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ValidationError(ValueError):
    """Raised when a caller hands the session an unusable answer."""

    def __init__(self, message: str, kind: str) -> None:
        super().__init__(message)
        self.kind = kind


class QuizSession:
    """Owns current position, recorded answers, timing and completion."""

    def __init__(
        self,
        questions: Sequence[Question],
        clock: Clock = utc_now,
        on_change: ChangeListener | None = None,
    ) -> None:
        if not questions:
            raise ValueError("Quiz must contain at least one question.")
        self._questions: tuple[Question, ...] = tuple(questions)
        self._clock = clock
        self._on_change = on_change
        self._answers: list[int | None]
        self._current_index: int
        self._started_at: datetime
        self._completed_at: datetime | None
        self._initialize()

    def _initialize(self) -> None:
        self._answers = [None] * len(self._questions)
        self._current_index = 0
        self._started_at = self._clock()
        self._completed_at = None

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    # --- Accessors ---

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def started_at(self) -> datetime:
        return self._started_at

    @property
    def completed_at(self) -> datetime | None:
        return self._completed_at

    def get_current_question(self) -> Question:
        return self._questions[self._current_index]

    def get_current_index(self) -> int:
        return self._current_index

    def get_total_questions(self) -> int:
        return len(self._questions)

    def get_current_answer(self) -> int | None:
        return self._answers[self._current_index]

    def get_answers(self) -> list[int | None]:
        return list(self._answers)

    def is_current_answered(self) -> bool:
        return self._answers[self._current_index] is not None

    # --- Answering ---

    def answer_current_question(self, option_index: int) -> None:
        """Record (or overwrite) the answer for the current question."""
        if isinstance(option_index, bool) or not isinstance(option_index, int):
            raise ValidationError(
                f"Option index must be an integer, got {option_index!r}.",
                kind="invalid-type",
            )
        option_count = self.get_current_question().option_count()
        if not 0 <= option_index < option_count:
            raise ValidationError(
                f"Option index {option_index} out of range for a question with {option_count} options.",
                kind="out-of-range",
            )
        self._answers[self._current_index] = option_index
        self._notify()

    # --- Navigation ---

    def can_go_previous(self) -> bool:
        return self._current_index > 0

    def can_go_next(self) -> bool:
        return self._current_index < len(self._questions) - 1

    def is_last_question(self) -> bool:
        return self._current_index == len(self._questions) - 1

    def go_to_previous(self) -> bool:
        if not self.can_go_previous():
            return False
        self._current_index -= 1
        self._notify()
        return True

    def go_to_next(self) -> bool:
        if not self.can_go_next():
            return False
        self._current_index += 1
        self._notify()
        return True

    def go_to_question(self, index: int) -> bool:
        if isinstance(index, bool) or not isinstance(index, int):
            return False
        if not 0 <= index < len(self._questions):
            return False
        self._current_index = index
        self._notify()
        return True

    # --- Lifecycle ---

    def complete(self) -> None:
        """Stamp the completion time. A second call overwrites the stamp."""
        self._completed_at = self._clock()
        self._notify()

    def is_completed(self) -> bool:
        return self._completed_at is not None

    def reset(self) -> None:
        """Start over on the same questions."""
        self._initialize()
        self._notify()

    # --- Scoring & metrics ---

    def calculate_score(self) -> int:
        return scoring.calculate_score(self._questions, self._answers)

    def calculate_accuracy(self) -> int:
        return scoring.percentage(self.calculate_score(), len(self._questions))

    def get_elapsed_time(self) -> timedelta:
        return scoring.elapsed_between(self._started_at, self._completed_at, self._clock())

    def get_elapsed_ms(self) -> int:
        return scoring.to_milliseconds(self.get_elapsed_time())

    def get_formatted_time(self) -> str:
        return scoring.format_elapsed(self.get_elapsed_time())

    def get_correct_answer_index(self) -> int:
        return self.get_current_question().correct_option_index()

    def get_answered_count(self) -> int:
        return scoring.count_answered(self._answers)

    def get_progress(self) -> int:
        return scoring.percentage(self.get_answered_count(), len(self._questions))

    def summarize(self) -> scoring.SessionSummary:
        elapsed = self.get_elapsed_time()
        return scoring.SessionSummary(
            score=self.calculate_score(),
            total_questions=len(self._questions),
            accuracy=self.calculate_accuracy(),
            answered_count=self.get_answered_count(),
            progress=self.get_progress(),
            elapsed_ms=scoring.to_milliseconds(elapsed),
            formatted_time=scoring.format_elapsed(elapsed),
            completed=self.is_completed(),
        )
