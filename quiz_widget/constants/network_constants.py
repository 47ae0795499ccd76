"""Network configuration constants for the quiz widget."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
DEFAULT_BASE_URL: str = "http://localhost:8000"
DEFAULT_API_URL: str = "http://localhost:9000"
DEFAULT_HTTP_TIMEOUT_SECONDS: float = 10.0

QUIZ_ENDPOINT_PATH: str = "/api/quiz"
USERINFO_ENDPOINT_PATH: str = "/oauth/internal/oidc/oauth/userinfo"
SUPPORTED_SCOPES: tuple[str, ...] = ("read:stuff",)
