"""Contract every quiz result storage backend implements."""

from __future__ import annotations

from abc import ABC, abstractmethod

from quiz_engine.core.models import LoadedQuizResult, QuizResult


class StorageError(RuntimeError):
    """Raised when a storage backend fails. "Not found" is never an error."""


class QuizStorageAdapter(ABC):
    """Asynchronous persistence of quiz results across attempts."""

    supports_clear_all: bool = False

    @abstractmethod
    async def save_result(self, result: QuizResult) -> LoadedQuizResult | None:
        """Persist ``result``; backends may return the stored form."""

    @abstractmethod
    async def load_result(
        self,
        quiz_id: str,
        user_id: str | None = None,
        attempt_number: int | None = None,
    ) -> LoadedQuizResult | None:
        """Load one attempt, or the latest one when ``attempt_number`` is omitted."""

    @abstractmethod
    async def load_all_results(
        self, quiz_id: str, user_id: str | None = None
    ) -> list[LoadedQuizResult]:
        """Load every attempt, ordered by ascending attempt number."""

    @abstractmethod
    async def delete_result(
        self,
        quiz_id: str,
        user_id: str | None = None,
        attempt_number: int | None = None,
    ) -> None:
        """Delete one attempt, or every attempt when ``attempt_number`` is omitted."""

    async def clear_all(self) -> None:
        """Delete every stored result. Only backends with ``supports_clear_all``."""
        raise NotImplementedError(f"{type(self).__name__} cannot clear all results.")

    async def aclose(self) -> None:
        """Release connections held by the backend."""
