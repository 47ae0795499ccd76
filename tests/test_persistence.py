"""
Tests for the quiz backend client.
"""

import json

import httpx
import pytest

from quiz_widget.config import WidgetConfig
from quiz_widget.core.quiz_exporter import build_save_bundle
from quiz_widget.core.services.persistence import AuthenticationError, BackendError, QuizBackendClient

from conftest import question_payload


def make_client(handler) -> QuizBackendClient:
    widget_config = WidgetConfig(api_url="https://backend.test", app_name="quiz-generator", app_version="1.0.0")
    return QuizBackendClient(widget_config, transport=httpx.MockTransport(handler))


class TestHeaders:
    """Every request identifies the app and the user."""

    def test_request_headers(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"sub": "user-1", "user_token": "inner"})

        client = make_client(handler)
        client.get_user_info("outer")

        request = seen[0]
        assert request.url == "https://backend.test/oauth/internal/oidc/oauth/userinfo"
        assert request.headers["Authorization"] == "Bearer outer"
        assert request.headers["X-App-Name"] == "quiz-generator"
        assert request.headers["X-App-Version"] == "1.0.0"
        assert request.headers["X-Trace-ID"]
        assert "X-Time-Zone" in request.headers

    def test_trace_ids_differ(self):
        trace_ids = []

        def handler(request):
            trace_ids.append(request.headers["X-Trace-ID"])
            return httpx.Response(200, json={})

        client = make_client(handler)
        client.get_user_info("t")
        client.get_user_info("t")

        assert trace_ids[0] != trace_ids[1]


class TestSaveQuiz:
    """Tests for save_quiz; failures are returned, never raised."""

    def test_success(self, quiz):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"id": "saved-1"})

        result = make_client(handler).save_quiz(build_save_bundle(quiz, [1, None, None]), "token")

        assert result.success is True
        assert bodies[0]["title"] == "Arithmetic"
        assert bodies[0]["answers"] == [1, None, None]

    def test_empty_response_body(self, quiz):
        result = make_client(lambda request: httpx.Response(204)).save_quiz(build_save_bundle(quiz), "token")

        assert result.success is True

    def test_server_error(self, quiz):
        handler = lambda request: httpx.Response(500, json={"message": "database unavailable"})

        result = make_client(handler).save_quiz(build_save_bundle(quiz), "token")

        assert result.success is False
        assert result.message == "database unavailable"

    def test_transport_error(self, quiz):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = make_client(handler).save_quiz(build_save_bundle(quiz), "token")

        assert result.success is False
        assert "refused" in result.message

    def test_save_quiz_data(self, quiz):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={})

        assert make_client(handler).save_quiz_data(quiz, "token").success is True
        assert "answers" not in bodies[0]


class TestFetchQuiz:
    """Tests for fetch_quiz."""

    def test_wrapped_response(self):
        payload = {"language": "fr", "data": {"title": "Histoire", "description": "", "questions": [question_payload("h1")]}}

        imported = make_client(lambda request: httpx.Response(200, json=payload)).fetch_quiz("token")

        assert imported.language == "fr"
        assert imported.quiz.title == "Histoire"

    def test_flat_response(self):
        payload = {"title": "Flat", "description": "", "questions": [question_payload("f1")]}

        imported = make_client(lambda request: httpx.Response(200, json=payload)).fetch_quiz("token")

        assert imported.language == "en"
        assert imported.quiz.questions[0].id == "f1"

    def test_unauthorized(self):
        with pytest.raises(AuthenticationError):
            make_client(lambda request: httpx.Response(401)).fetch_quiz("bad")

    def test_error_message_from_body(self):
        handler = lambda request: httpx.Response(404, json={"message": "No saved quiz"})

        with pytest.raises(BackendError, match="No saved quiz"):
            make_client(handler).fetch_quiz("token")

    def test_error_without_body(self):
        with pytest.raises(BackendError, match="status: 503"):
            make_client(lambda request: httpx.Response(503, text="oops")).fetch_quiz("token")

    def test_malformed_quiz(self):
        handler = lambda request: httpx.Response(200, json={"title": "No questions"})

        with pytest.raises(BackendError, match="malformed"):
            make_client(handler).fetch_quiz("token")

    def test_non_json(self):
        handler = lambda request: httpx.Response(200, text="<html>")

        with pytest.raises(BackendError):
            make_client(handler).fetch_quiz("token")
