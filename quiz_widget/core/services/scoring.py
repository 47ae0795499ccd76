"""Pure score and timing calculations derived from quiz session state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Sequence

from quiz_widget.core.models import Question

_ONE_SECOND = timedelta(seconds=1)


@dataclass(frozen=True, slots=True)
class SessionSummary:
    """Immutable snapshot of a session's results."""

    score: int
    total_questions: int
    accuracy: int
    answered_count: int
    progress: int
    elapsed_ms: int
    formatted_time: str
    completed: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "score": self.score,
            "totalQuestions": self.total_questions,
            "accuracy": self.accuracy,
            "answeredCount": self.answered_count,
            "progress": self.progress,
            "elapsedTime": self.elapsed_ms,
            "formattedTime": self.formatted_time,
            "completed": self.completed,
        }


def percentage(part: int, whole: int) -> int:
    """Integer percentage rounded half up, so 12.5 becomes 13."""
    if whole <= 0:
        return 0
    return (part * 200 + whole) // (2 * whole)


def is_correct_answer(question: Question, answer: int | None) -> bool:
    if answer is None or not 0 <= answer < len(question.options):
        return False
    return question.options[answer].is_correct


def calculate_score(questions: Sequence[Question], answers: Sequence[int | None]) -> int:
    return sum(
        1 for question, answer in zip(questions, answers) if is_correct_answer(question, answer)
    )


def count_answered(answers: Sequence[int | None]) -> int:
    return sum(1 for answer in answers if answer is not None)


def elapsed_between(started_at: datetime, completed_at: datetime | None, now: datetime) -> timedelta:
    """Frozen duration once completed, live duration otherwise."""
    end = completed_at if completed_at is not None else now
    return end - started_at


def to_milliseconds(duration: timedelta) -> int:
    return duration // timedelta(milliseconds=1)


def format_elapsed(duration: timedelta) -> str:
    """Render as M:SS. Partial seconds are dropped, minutes are not padded."""
    total_seconds = max(0, duration // _ONE_SECOND)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"
