"""Utilities for exporting quizzes to the bundle the backend stores."""

from __future__ import annotations

import json
from typing import Any, Sequence

from quiz_widget.core.models import QuizData


def build_save_bundle(quiz: QuizData, answers: Sequence[int | None] | None = None) -> dict[str, Any]:
    """Serialize the quiz, and the recorded answers when provided."""

    if not quiz.questions:
        raise ValueError("Cannot export an empty quiz.")

    bundle: dict[str, Any] = {
        "title": quiz.title,
        "description": quiz.description,
        "questions": [question.to_dict() for question in quiz.questions],
    }
    if answers is not None:
        if len(answers) != len(quiz.questions):
            raise ValueError("Answer count does not match the number of questions.")
        bundle["answers"] = list(answers)
    return bundle


def build_tool_payload(quiz: QuizData) -> dict[str, Any]:
    """Shape a quiz the way the quiz-generator tool hands it to the widget."""

    return {
        "language": quiz.language,
        "type": "quiz",
        "data": build_save_bundle(quiz),
    }


def dump_bundle(bundle: dict[str, Any]) -> str:
    return json.dumps(bundle, ensure_ascii=False, indent=2)
