"""Domain models for the quiz widget."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from quiz_widget.constants.quiz_constants import DEFAULT_LANGUAGE, NO_CORRECT_OPTION


@dataclass(frozen=True, slots=True)
class QuestionOption:
    """One selectable answer with the explanation revealed after answering."""

    text: str
    is_correct: bool = False
    explanation: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "isCorrect": self.is_correct,
            "explanation": self.explanation,
        }


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question. Prompt and hint may embed math markup."""

    id: str
    prompt: str
    options: tuple[QuestionOption, ...]
    hint: str = ""

    def correct_option_index(self) -> int:
        """Index of the first option flagged correct, or -1 when none is."""
        return next(
            (index for index, option in enumerate(self.options) if option.is_correct),
            NO_CORRECT_OPTION,
        )

    def option_count(self) -> int:
        return len(self.options)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "question": self.prompt,
            "hint": self.hint,
            "options": [option.to_dict() for option in self.options],
        }


@dataclass(frozen=True, slots=True)
class QuizData:
    """Quiz supplied by the assistant: metadata plus an ordered question list."""

    title: str
    description: str
    questions: tuple[Question, ...]
    language: str = DEFAULT_LANGUAGE
    topic: str | None = None
    difficulty: str | None = None

    def question_count(self) -> int:
        return len(self.questions)
