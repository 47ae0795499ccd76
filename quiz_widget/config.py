"""
Quiz widget configuration

Deployment values live here. Environment variables override the defaults
from the constants modules.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from quiz_widget.constants.about import APP_NAME, APP_VERSION
from quiz_widget.constants.network_constants import (
    DEFAULT_API_URL,
    DEFAULT_BASE_URL,
    DEFAULT_HOST,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_PORT,
)


@dataclass
class WidgetConfig:
    """Where the widget listens and which backend it talks to."""

    host: str = os.getenv("QUIZ_WIDGET_HOST", DEFAULT_HOST)
    port: int = int(os.getenv("QUIZ_WIDGET_PORT", str(DEFAULT_PORT)))
    base_url: str = os.getenv("QUIZ_WIDGET_BASE_URL", DEFAULT_BASE_URL)
    api_url: str = os.getenv("QUIZ_WIDGET_API_URL", DEFAULT_API_URL)
    app_name: str = os.getenv("QUIZ_WIDGET_APP_NAME", APP_NAME)
    app_version: str = os.getenv("QUIZ_WIDGET_APP_VERSION", APP_VERSION)
    time_zone: str = os.getenv("QUIZ_WIDGET_TIME_ZONE", os.getenv("TZ", "UTC"))
    http_timeout_seconds: float = float(
        os.getenv("QUIZ_WIDGET_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT_SECONDS))
    )

    @property
    def protected_resource_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/.well-known/oauth-protected-resource"

    @property
    def authorization_server_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/oauth/oidc/{self.app_name}"


# Singleton
config = WidgetConfig()
