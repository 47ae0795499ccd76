"""FastAPI server exposing the assistant tools and the widget session endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse

from quiz_widget.config import WidgetConfig, config as default_config
from quiz_widget.constants.about import (
    APP_TITLE,
    APP_VERSION,
    WIDGET_DESCRIPTION,
    WIDGET_INVOKED_TEXT,
    WIDGET_INVOKING_TEXT,
    WIDGET_TEMPLATE_URI,
)
from quiz_widget.constants.network_constants import SUPPORTED_SCOPES
from quiz_widget.core.markdown_math_renderer import renderer
from quiz_widget.core.quiz_exporter import build_save_bundle, build_tool_payload
from quiz_widget.core.quiz_importer import QuizImportError, load_quiz_from_payload
from quiz_widget.core.quiz_manager import QuizManager, SessionNotFoundError, SessionSnapshot
from quiz_widget.core.quiz_session import ValidationError
from quiz_widget.core.services.persistence import AuthenticationError, BackendError, QuizBackendClient
from quiz_widget.server.schemas import AnswerPayload, GoToPayload, QuizGeneratorInput, QuizSaverInput

logger = logging.getLogger(__name__)

_WIDGET_PAGE_HTML = """<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <title>Quiz</title>
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <link rel=\"stylesheet\" href=\"https://cdn.jsdelivr.net/npm/katex@0.16/dist/katex.min.css\" />
    <script defer src=\"https://cdn.jsdelivr.net/npm/katex@0.16/dist/katex.min.js\"></script>
    <script defer src=\"https://cdn.jsdelivr.net/npm/katex@0.16/dist/contrib/auto-render.min.js\"></script>
    <style>
      body { font-family: system-ui, sans-serif; margin: 0; padding: 1rem; }
      .option { display: block; width: 100%; text-align: left; margin: 0.4rem 0; padding: 0.75rem; border-radius: 0.5rem; border: 1px solid #cbd5e1; background: #fff; cursor: pointer; }
      .option.selected { border-color: #2563eb; }
      .option.correct { background: #dcfce7; }
      .option.wrong { background: #fee2e2; }
      .hidden { display: none; }
    </style>
  </head>
  <body>
    <section id=\"quiz\"></section>
    <script>
      const root = document.getElementById('quiz');
      let sessionId = null;

      async function call(path, method = 'POST', body = undefined) {
        const response = await fetch(path, {
          method,
          headers: { 'Content-Type': 'application/json' },
          body: body === undefined ? undefined : JSON.stringify(body),
        });
        return response.json();
      }

      function escapeText(value) {
        const span = document.createElement('span');
        span.textContent = value == null ? '' : String(value);
        return span.innerHTML;
      }

      function typeset() {
        if (window.renderMathInElement) {
          window.renderMathInElement(root, { delimiters: [
            { left: '$$', right: '$$', display: true },
            { left: '$', right: '$', display: false },
          ] });
        }
      }

      function render(state) {
        if (state.completed) {
          const s = state.summary;
          root.innerHTML = `<h2>${escapeText(state.title)}</h2><p>${s.score} / ${s.totalQuestions} (${s.accuracy}%)</p>` +
            `<p>Time: ${s.formattedTime}</p><button id=\"retake\">Retake</button>`;
          document.getElementById('retake').onclick = async () => render(await call(`/sessions/${sessionId}/retake`));
          return;
        }
        const options = state.options.map(o => {
          let cls = 'option';
          if (o.index === state.selected_option) cls += ' selected';
          if (o.is_correct === true) cls += ' correct';
          else if (o.is_correct === false && o.index === state.selected_option) cls += ' wrong';
          const explanation = o.explanation_html ? `<div>${o.explanation_html}</div>` : '';
          return `<button class=\"${cls}\" data-index=\"${o.index}\">${o.html}${explanation}</button>`;
        }).join('');
        root.innerHTML = `<p>${state.current_index + 1} / ${state.total_questions}</p>` +
          `<div>${state.question_html}</div>` +
          `<button id=\"hint\">Hint</button><div class=\"${state.show_hint ? '' : 'hidden'}\">${state.hint_html || ''}</div>` +
          `<div>${options}</div>` +
          `<button id=\"prev\" ${state.can_go_previous ? '' : 'disabled'}>Previous</button>` +
          `<button id=\"next\">${state.is_last_question ? 'Finish' : 'Next'}</button>`;
        root.querySelectorAll('.option').forEach(btn => {
          btn.onclick = async () => render(await call(`/sessions/${sessionId}/answer`, 'POST', { selected_option_index: Number(btn.dataset.index) }));
        });
        document.getElementById('hint').onclick = async () => render(await call(`/sessions/${sessionId}/hint`));
        document.getElementById('prev').onclick = async () => render(await call(`/sessions/${sessionId}/previous`));
        document.getElementById('next').onclick = async () => render(await call(`/sessions/${sessionId}/next`));
        typeset();
      }

      async function boot() {
        const quiz = window.openai && window.openai.toolOutput;
        if (!quiz || !quiz.data) {
          root.textContent = 'Loading quiz...';
          setTimeout(boot, 500);
          return;
        }
        const state = await call('/sessions', 'POST', quiz);
        sessionId = state.session_id;
        render(state);
      }

      boot();
    </script>
  </body>
</html>
"""


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _get_backend_dependency(backend_client: QuizBackendClient):
    def dependency() -> QuizBackendClient:
        return backend_client

    return dependency


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _auth_required_response(widget_config: WidgetConfig) -> JSONResponse:
    challenge = (
        f'Bearer resource_metadata="{widget_config.protected_resource_url}", '
        'error="insufficient_scope", error_description="Authentication required"'
    )
    return JSONResponse(
        status_code=401,
        headers={"WWW-Authenticate": challenge},
        content={
            "content": [{"type": "text", "text": "Authentication required"}],
            "_meta": {"mcp/www_authenticate": [challenge]},
            "isError": True,
        },
    )


def _widget_meta() -> dict[str, object]:
    return {
        "openai/outputTemplate": WIDGET_TEMPLATE_URI,
        "openai/toolInvocation/invoking": WIDGET_INVOKING_TEXT,
        "openai/toolInvocation/invoked": WIDGET_INVOKED_TEXT,
        "openai/widgetAccessible": False,
        "openai/resultCanProduceWidget": True,
    }


def _snapshot_payload(snapshot: SessionSnapshot) -> dict[str, object]:
    question = snapshot.question
    answered = snapshot.selected_option is not None
    options = []
    for index, option in enumerate(question.options):
        entry: dict[str, object] = {"index": index, "html": renderer.render_inline(option.text)}
        if answered:
            # Explanations and correctness are revealed once the question is answered
            entry["is_correct"] = option.is_correct
            entry["explanation_html"] = renderer.render_fragment(option.explanation)
        options.append(entry)
    return {
        "session_id": snapshot.session_id,
        "title": snapshot.title,
        "description": snapshot.description,
        "language": snapshot.language,
        "question_id": question.id,
        "question_html": renderer.render_fragment(question.prompt),
        "hint_html": renderer.render_fragment(question.hint) if snapshot.show_hint else None,
        "options": options,
        "current_index": snapshot.current_index,
        "total_questions": snapshot.total_questions,
        "selected_option": snapshot.selected_option,
        "correct_option_index": snapshot.correct_option_index,
        "can_go_previous": snapshot.can_go_previous,
        "can_go_next": snapshot.can_go_next,
        "is_last_question": snapshot.is_last_question,
        "show_hint": snapshot.show_hint,
        "completed": snapshot.completed,
        "summary": snapshot.summary.to_dict(),
    }


def create_api_app(
    quiz_manager: QuizManager,
    backend_client: QuizBackendClient,
    widget_config: WidgetConfig | None = None,
) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager and backend."""
    widget_config = widget_config or default_config
    app = FastAPI(title=f"{APP_TITLE} API", version=APP_VERSION)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)
    backend_dep = _get_backend_dependency(backend_client)

    def resolve_token(request: Request, backend: QuizBackendClient) -> str | None:
        """Swap the host's bearer token for the backend user token."""
        token = _bearer_token(request)
        if token is None:
            return None
        try:
            info = backend.get_user_info(token)
        except AuthenticationError:
            return None
        return str(info.get("user_token") or token)

    @app.get("/", response_class=HTMLResponse)
    def serve_widget_page() -> str:
        return _WIDGET_PAGE_HTML

    @app.get("/.well-known/oauth-protected-resource")
    def get_protected_resource_metadata() -> dict[str, object]:
        return {
            "resource": widget_config.base_url,
            "scopes_supported": list(SUPPORTED_SCOPES),
            "authorization_servers": [widget_config.authorization_server_url],
        }

    # --- Assistant tools ---

    @app.get("/tools")
    def list_tools() -> dict[str, object]:
        return {
            "tools": [
                {
                    "name": "quiz-generator",
                    "description": WIDGET_DESCRIPTION,
                    "inputSchema": QuizGeneratorInput.model_json_schema(by_alias=True),
                    "_meta": _widget_meta(),
                },
                {
                    "name": "get-quiz",
                    "description": "Retrieve the saved quiz; pass its 'quiz' object to quiz-generator.",
                    "securitySchemes": [{"type": "oauth2", "scopes": list(SUPPORTED_SCOPES)}],
                    "annotations": {"readOnlyHint": True},
                },
                {
                    "name": "quiz-saver",
                    "description": "Save the Quiz to the backend database",
                    "inputSchema": QuizSaverInput.model_json_schema(by_alias=True),
                },
            ]
        }

    @app.post("/tools/quiz-generator")
    def quiz_generator(payload: QuizGeneratorInput) -> dict[str, object]:
        quiz = payload.to_quiz()
        logger.info("Generated quiz '%s' with %d question(s)", quiz.title, quiz.question_count())
        return {
            "content": [],
            "structuredContent": build_tool_payload(quiz),
            "_meta": _widget_meta(),
        }

    @app.post("/tools/get-quiz", response_model=None)
    def get_quiz(
        request: Request,
        backend: QuizBackendClient = Depends(backend_dep),
    ) -> dict[str, object] | JSONResponse:
        try:
            token = resolve_token(request, backend)
            if token is None:
                return _auth_required_response(widget_config)
            imported = backend.fetch_quiz(token)
        except BackendError as exc:
            logger.warning("Fetching saved quiz failed: %s", exc)
            return {
                "content": [{"type": "text", "text": f"Failed to get quiz: {exc}"}],
                "structuredContent": {"success": False, "message": str(exc)},
                "isError": True,
            }
        quiz = imported.quiz
        return {
            "content": [
                {"type": "text", "text": f'Found saved quiz: "{quiz.title}". Now displaying it with quiz-generator...'}
            ],
            "structuredContent": {
                "success": True,
                "message": "Quiz fetched successfully. Call quiz-generator with the quiz data to display it.",
                "quiz": {"language": imported.language, "data": build_save_bundle(quiz)},
            },
        }

    @app.post("/tools/quiz-saver", response_model=None)
    def quiz_saver(
        payload: QuizSaverInput,
        request: Request,
        backend: QuizBackendClient = Depends(backend_dep),
    ) -> dict[str, object] | JSONResponse:
        try:
            token = resolve_token(request, backend)
        except BackendError as exc:
            logger.warning("Resolving user for quiz-saver failed: %s", exc)
            return {
                "content": [{"type": "text", "text": f"Failed to save quiz: {exc}"}],
                "structuredContent": {"type": "quiz-saver", "success": False, "message": str(exc)},
                "isError": True,
            }
        if token is None:
            return _auth_required_response(widget_config)
        result = backend.save_quiz(build_save_bundle(payload.to_quiz(), payload.answers), token)
        return {
            "content": [{"type": "text", "text": result.message}],
            "structuredContent": {"type": "quiz-saver", "success": result.success, "message": result.message},
            "_meta": _widget_meta(),
        }

    # --- Widget sessions ---

    @app.post("/sessions", status_code=201)
    def create_session(
        payload: dict[str, Any] = Body(...),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            imported = load_quiz_from_payload(payload)
        except QuizImportError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        session_id = manager.start_session(imported.quiz)
        return _snapshot_payload(manager.get_snapshot(session_id))

    @app.get("/sessions/{session_id}")
    def get_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        try:
            return _snapshot_payload(manager.get_snapshot(session_id))
        except SessionNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Unknown quiz session.") from exc

    @app.delete("/sessions/{session_id}", status_code=204)
    def delete_session(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> None:
        try:
            manager.end_session(session_id)
        except SessionNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Unknown quiz session.") from exc

    @app.post("/sessions/{session_id}/answer")
    def answer_question(
        session_id: str,
        payload: AnswerPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            snapshot = manager.answer(session_id, payload.selected_option_index)
        except SessionNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Unknown quiz session.") from exc
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail={"kind": exc.kind, "message": str(exc)}) from exc
        return _snapshot_payload(snapshot)

    @app.post("/sessions/{session_id}/previous")
    def previous_question(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        return _run(manager.go_previous, session_id)

    @app.post("/sessions/{session_id}/next")
    def next_question(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        return _run(manager.advance, session_id)

    @app.post("/sessions/{session_id}/goto")
    def go_to_question(
        session_id: str,
        payload: GoToPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _run(manager.go_to, session_id, payload.index)

    @app.post("/sessions/{session_id}/hint")
    def toggle_hint(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        return _run(manager.toggle_hint, session_id)

    @app.post("/sessions/{session_id}/retake")
    def retake_quiz(session_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        return _run(manager.retake, session_id)

    @app.post("/sessions/{session_id}/save", response_model=None)
    def save_session(
        session_id: str,
        request: Request,
        manager: QuizManager = Depends(quiz_manager_dep),
        backend: QuizBackendClient = Depends(backend_dep),
    ) -> dict[str, object] | JSONResponse:
        if not manager.has_session(session_id):
            raise HTTPException(status_code=404, detail="Unknown quiz session.")
        try:
            token = resolve_token(request, backend)
        except BackendError as exc:
            return {"success": False, "message": str(exc)}
        if token is None:
            return _auth_required_response(widget_config)
        try:
            result = manager.save(session_id, lambda bundle: backend.save_quiz(bundle, token))
        except SessionNotFoundError as exc:
            raise HTTPException(status_code=404, detail="Unknown quiz session.") from exc
        return {"success": result.success, "message": result.message}

    return app


def _run(action, session_id: str, *args: Any) -> dict[str, object]:
    try:
        return _snapshot_payload(action(session_id, *args))
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Unknown quiz session.") from exc
