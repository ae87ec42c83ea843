"""Storage layout constants for persisted quiz results."""

from pathlib import Path

DEFAULT_KEY_PREFIX: str = "lms_quiz"
DEFAULT_USER_ID: str = "default_user"
DEFAULT_DATA_DIR: Path = Path.home() / ".quiz_engine" / "results"
RESULT_FILE_SUFFIX: str = ".json"
