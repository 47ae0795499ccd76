"""Utilities for importing quizzes from assistant tool payloads.

Two payload shapes are accepted:

    {"language": "en", "data": {"title": ..., "description": ..., "questions": [...]}}
    {"title": ..., "description": ..., "questions": [...]}

The first is what the quiz-generator tool emits; the second is what the
backend returns for a saved quiz. Each question looks like:

    {
        "id": "q1",
        "question": "What is $2 + 2$?",
        "hint": "Count on your fingers.",
        "options": [
            {"text": "3", "isCorrect": false, "explanation": "One short."},
            {"text": "4", "isCorrect": true, "explanation": "Correct."},
            ...
        ]
    }

Architecture note:
    The importer only checks that the payload is structurally usable. Whether
    each question has exactly one correct option is the tool schema's job;
    a quiz that slips through with zero or several correct options still
    loads, and scoring simply never awards an unscorable question.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from quiz_widget.constants.quiz_constants import DEFAULT_LANGUAGE
from quiz_widget.core.models import Question, QuestionOption, QuizData


class QuizImportError(Exception):
    """Raised when a quiz payload cannot be parsed."""


@dataclass(slots=True)
class ImportedQuiz:
    """Container for an imported quiz and the language it was authored in."""

    language: str
    quiz: QuizData


def load_quiz_from_payload(payload: Mapping[str, Any]) -> ImportedQuiz:
    if not isinstance(payload, Mapping):
        raise QuizImportError("Quiz payload must be a JSON object.")

    language = payload.get("language") or DEFAULT_LANGUAGE
    data = payload.get("data", payload)
    if not isinstance(data, Mapping):
        raise QuizImportError("Quiz 'data' must be a JSON object.")

    questions = _parse_questions(data.get("questions"))
    if not questions:
        raise QuizImportError("Quiz payload did not contain any questions.")

    quiz = QuizData(
        title=_optional_text(data, "title"),
        description=_optional_text(data, "description"),
        questions=tuple(questions),
        language=str(language),
        topic=data.get("topic"),
        difficulty=data.get("difficulty"),
    )
    return ImportedQuiz(language=quiz.language, quiz=quiz)


def _parse_questions(raw_questions: Any) -> list[Question]:
    if raw_questions is None:
        return []
    if not isinstance(raw_questions, list):
        raise QuizImportError("'questions' must be a list.")
    seen_ids: set[str] = set()
    questions: list[Question] = []
    for position, raw in enumerate(raw_questions, start=1):
        question = _parse_question(raw, position)
        if question.id in seen_ids:
            raise QuizImportError(f"Duplicate question id '{question.id}'.")
        seen_ids.add(question.id)
        questions.append(question)
    return questions


def _parse_question(raw: Any, position: int) -> Question:
    if not isinstance(raw, Mapping):
        raise QuizImportError(f"Question {position} must be a JSON object.")

    prompt = raw.get("question")
    if not isinstance(prompt, str) or not prompt.strip():
        raise QuizImportError(f"Question {position} is missing its text.")

    raw_options = raw.get("options")
    if not isinstance(raw_options, list) or not raw_options:
        raise QuizImportError(f"Question {position} must define at least one option.")

    options = tuple(_parse_option(option, position) for option in raw_options)
    question_id = raw.get("id")
    if question_id is None or not str(question_id).strip():
        question_id = f"q{position}"

    return Question(
        id=str(question_id),
        prompt=prompt.strip(),
        hint=_optional_text(raw, "hint"),
        options=options,
    )


def _parse_option(raw: Any, position: int) -> QuestionOption:
    if not isinstance(raw, Mapping):
        raise QuizImportError(f"Options of question {position} must be JSON objects.")
    text = raw.get("text")
    if not isinstance(text, str):
        raise QuizImportError(f"An option of question {position} has no text.")
    return QuestionOption(
        text=text.strip(),
        is_correct=raw.get("isCorrect") is True,
        explanation=_optional_text(raw, "explanation"),
    )


def _optional_text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return str(value).strip()
