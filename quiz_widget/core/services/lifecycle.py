"""Save hook wiring between a quiz session and a persistence collaborator."""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from quiz_widget.core.models import QuizData
from quiz_widget.core.quiz_exporter import build_save_bundle
from quiz_widget.core.services.persistence import SaveResult

logger = logging.getLogger(__name__)

SaveHook = Callable[[dict[str, Any]], SaveResult]


def save_session(quiz: QuizData, answers: Sequence[int | None] | None, hook: SaveHook) -> SaveResult:
    """Hand the quiz bundle to ``hook`` and report how it went.

    Only a copy of the answers reaches the hook. Whatever the hook does,
    including raising, the session it came from stays as it was.
    """
    answers = list(answers) if answers is not None else None
    bundle = build_save_bundle(quiz, answers)
    try:
        result = hook(bundle)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Save hook raised for quiz '%s': %s", quiz.title, exc)
        return SaveResult(success=False, message=str(exc) or exc.__class__.__name__)
    if not isinstance(result, SaveResult):
        result = SaveResult(success=bool(result), message="save success" if result else "save failed")
    return result
