"""Storage manager for quiz results."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from quiz_engine.constants.storage_constants import DEFAULT_DATA_DIR, DEFAULT_USER_ID
from quiz_engine.core.models import LoadedQuizResult, QuizResult
from quiz_engine.storage.adapter import QuizStorageAdapter
from quiz_engine.storage.api_adapter import ApiQuizAdapter
from quiz_engine.storage.local_adapter import LocalFileQuizAdapter


@dataclass(slots=True, frozen=True)
class QuizStatistics:
    """Aggregates derived from every stored attempt of a quiz."""

    total_attempts: int
    best_score: float
    average_score: float
    last_attempt: LoadedQuizResult | None = None


class QuizStorageManager:
    """Binds a storage adapter to a user and derives attempt statistics."""

    def __init__(self, adapter: QuizStorageAdapter, user_id: str | None = None) -> None:
        self._adapter = adapter
        self._user_id = user_id

    @property
    def adapter(self) -> QuizStorageAdapter:
        return self._adapter

    async def __aenter__(self) -> QuizStorageManager:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._adapter.aclose()

    async def save_result(self, result: QuizResult) -> LoadedQuizResult | None:
        return await self._adapter.save_result(result)

    async def load_latest_result(self, quiz_id: str) -> LoadedQuizResult | None:
        return await self._adapter.load_result(quiz_id, self._user_id)

    async def load_attempt(self, quiz_id: str, attempt_number: int) -> LoadedQuizResult | None:
        return await self._adapter.load_result(quiz_id, self._user_id, attempt_number)

    async def load_all_attempts(self, quiz_id: str) -> list[LoadedQuizResult]:
        return await self._adapter.load_all_results(quiz_id, self._user_id)

    async def delete_attempt(self, quiz_id: str, attempt_number: int) -> None:
        await self._adapter.delete_result(quiz_id, self._user_id, attempt_number)

    async def delete_all_attempts(self, quiz_id: str) -> None:
        await self._adapter.delete_result(quiz_id, self._user_id)

    async def clear_all(self) -> None:
        if self._adapter.supports_clear_all:
            await self._adapter.clear_all()

    async def get_quiz_statistics(self, quiz_id: str) -> QuizStatistics:
        attempts = await self.load_all_attempts(quiz_id)
        if not attempts:
            return QuizStatistics(total_attempts=0, best_score=0.0, average_score=0.0)

        scores = [attempt.score for attempt in attempts]
        return QuizStatistics(
            total_attempts=len(attempts),
            best_score=max(scores),
            average_score=sum(scores) / len(scores),
            last_attempt=attempts[-1],
        )


def create_local_storage_manager(
    user_id: str = DEFAULT_USER_ID, directory: Path = DEFAULT_DATA_DIR
) -> QuizStorageManager:
    return QuizStorageManager(LocalFileQuizAdapter(directory, user_id=user_id), user_id=user_id)


def create_api_storage_manager(
    base_url: str, user_id: str, api_key: str | None = None
) -> QuizStorageManager:
    return QuizStorageManager(ApiQuizAdapter(base_url, user_id=user_id, api_key=api_key), user_id=user_id)
