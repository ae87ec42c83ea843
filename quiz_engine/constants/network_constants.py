"""Network configuration constants for the quiz results service."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
RESULTS_ENDPOINT: str = "/quiz-results"
DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 30.0
