"""Quiz-related constants shared across the core and server layers."""

OPTIONS_PER_QUESTION: int = 4
MIN_QUESTIONS: int = 1
MAX_QUESTIONS: int = 10
DEFAULT_NUM_QUESTIONS: int = 5
DEFAULT_LANGUAGE: str = "en"
DEFAULT_DIFFICULTY: str = "medium"
DIFFICULTY_LEVELS: tuple[str, ...] = ("easy", "medium", "hard")

NO_CORRECT_OPTION: int = -1

# Widget sessions are never ended explicitly by the host iframe
MAX_SESSIONS: int = 500
SESSION_IDLE_TIMEOUT_SECONDS: int = 60 * 60
