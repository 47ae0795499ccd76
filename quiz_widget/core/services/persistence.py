"""HTTP client for the backend that stores quizzes and resolves users."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any
from uuid import uuid4

import httpx

from quiz_widget.config import WidgetConfig, config as default_config
from quiz_widget.constants.network_constants import QUIZ_ENDPOINT_PATH, USERINFO_ENDPOINT_PATH
from quiz_widget.core.models import QuizData
from quiz_widget.core.quiz_exporter import build_save_bundle
from quiz_widget.core.quiz_importer import ImportedQuiz, QuizImportError, load_quiz_from_payload

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Raised when the backend cannot be reached or answers with an error."""


class AuthenticationError(BackendError):
    """Backend rejected the bearer token."""


@dataclass(frozen=True, slots=True)
class SaveResult:
    """Outcome of a save attempt. Failures are reported, never raised."""

    success: bool
    message: str


class QuizBackendClient:
    """Talks to the quiz backend on behalf of an authenticated user."""

    def __init__(
        self,
        widget_config: WidgetConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = widget_config or default_config
        self._client = httpx.Client(
            base_url=self._config.api_url,
            timeout=self._config.http_timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "X-App-Name": self._config.app_name,
            "X-App-Version": self._config.app_version,
            "X-Time-Zone": self._config.time_zone,
            "X-Trace-ID": str(uuid4()),
        }

    def _request(self, method: str, path: str, token: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, headers=self._headers(token), **kwargs)
            response.raise_for_status()
            if not response.content:
                return None
            return response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status in (401, 403):
                raise AuthenticationError(f"Backend rejected credentials ({status}).") from exc
            raise BackendError(_error_message(exc.response)) from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"Backend request failed: {exc}") from exc
        except ValueError as exc:
            raise BackendError("Backend returned a non-JSON response.") from exc

    def get_user_info(self, token: str) -> dict[str, Any]:
        """Resolve the user behind a bearer token via the OIDC userinfo endpoint."""
        info = self._request("GET", USERINFO_ENDPOINT_PATH, token)
        if not isinstance(info, dict):
            raise BackendError("Unexpected userinfo payload.")
        return info

    def fetch_quiz(self, token: str) -> ImportedQuiz:
        payload = self._request("GET", QUIZ_ENDPOINT_PATH, token)
        try:
            return load_quiz_from_payload(payload)
        except QuizImportError as exc:
            raise BackendError(f"Saved quiz is malformed: {exc}") from exc

    def save_quiz(self, bundle: dict[str, Any], token: str) -> SaveResult:
        try:
            self._request("POST", QUIZ_ENDPOINT_PATH, token, json=bundle)
        except BackendError as exc:
            logger.warning("Saving quiz '%s' failed: %s", bundle.get("title", ""), exc)
            return SaveResult(success=False, message=str(exc))
        logger.info("Saved quiz '%s' with %d question(s)", bundle.get("title", ""), len(bundle["questions"]))
        return SaveResult(success=True, message="save success")

    def save_quiz_data(self, quiz: QuizData, token: str) -> SaveResult:
        return self.save_quiz(build_save_bundle(quiz), token)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP error! status: {response.status_code}"
