"""Persistence backends for quiz results."""

from .adapter import QuizStorageAdapter, StorageError
from .api_adapter import ApiEndpoints, ApiQuizAdapter
from .local_adapter import LocalFileQuizAdapter
from .storage_manager import (
    QuizStatistics,
    QuizStorageManager,
    create_api_storage_manager,
    create_local_storage_manager,
)

__all__ = [
    "ApiEndpoints",
    "ApiQuizAdapter",
    "LocalFileQuizAdapter",
    "QuizStatistics",
    "QuizStorageAdapter",
    "QuizStorageManager",
    "StorageError",
    "create_api_storage_manager",
    "create_local_storage_manager",
]
