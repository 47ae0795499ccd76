"""Shared fixtures for quiz widget tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from quiz_widget.core.models import Question, QuestionOption, QuizData


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def make_question(question_id: str, correct: int | None = 0, option_count: int = 4) -> Question:
    """Build a question whose option ``correct`` is flagged (None for no correct option)."""
    return Question(
        id=question_id,
        prompt=f"Question {question_id}",
        hint=f"Hint for {question_id}",
        options=tuple(
            QuestionOption(
                text=f"Option {index}",
                is_correct=index == correct,
                explanation=f"Explanation {index}",
            )
            for index in range(option_count)
        ),
    )


def question_payload(question_id: str, correct: int = 0) -> dict:
    return {
        "id": question_id,
        "question": f"What is ${question_id}$?",
        "hint": "Think about it.",
        "options": [
            {"text": f"Option {index}", "isCorrect": index == correct, "explanation": f"Because {index}"}
            for index in range(4)
        ],
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def quiz() -> QuizData:
    return QuizData(
        title="Arithmetic",
        description="Basic sums",
        questions=(make_question("q1", correct=1), make_question("q2", correct=2), make_question("q3", correct=0)),
    )


@pytest.fixture
def generator_payload() -> dict:
    return {
        "language": "en",
        "data": {
            "topic": "Arithmetic",
            "numQuestions": 2,
            "difficulty": "easy",
            "title": "Arithmetic Quiz",
            "description": "Sums and products",
            "questions": [question_payload("q1", correct=1), question_payload("q2", correct=3)],
        },
    }
