"""Application entry point for the quiz widget server."""

from __future__ import annotations

import uvicorn

from quiz_widget.config import config
from quiz_widget.core.quiz_manager import QuizManager
from quiz_widget.core.services.persistence import QuizBackendClient
from quiz_widget.server.api_server import create_api_app
from quiz_widget.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging and serve the widget and tool endpoints."""
    logger = configure_logging()
    logger.info("Starting quiz widget on %s:%d", config.host, config.port)
    logger.info("Quiz backend at %s", config.api_url)

    quiz_manager = QuizManager()
    backend_client = QuizBackendClient(config)
    app = create_api_app(quiz_manager=quiz_manager, backend_client=backend_client, widget_config=config)
    try:
        uvicorn.run(app, host=config.host, port=config.port, log_level="info")
    finally:
        backend_client.close()


if __name__ == "__main__":
    main()
