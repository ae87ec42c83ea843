"""Quiz result storage backed by JSON files in a local directory.

Layout, for key prefix ``lms_quiz`` and user ``alice``::

    lms_quiz_alice_<quiz>_attempt_<n>.json   one file per attempt
    lms_quiz_alice_<quiz>_latest.json        copy of the most recent save
    lms_quiz_alice_index.json                {quiz id: [attempt numbers]}
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
import re
from typing import Any

from quiz_engine.constants.storage_constants import (
    DEFAULT_KEY_PREFIX,
    DEFAULT_USER_ID,
    RESULT_FILE_SUFFIX,
)
from quiz_engine.core.models import LoadedQuizResult, QuizResult
from quiz_engine.core.result_codec import ResultFormatError, result_from_dict, result_to_dict
from quiz_engine.storage.adapter import QuizStorageAdapter, StorageError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LocalFileQuizAdapter(QuizStorageAdapter):
    """Stores each attempt as a JSON document on disk.

    File access runs in a worker thread so a running quiz timer keeps ticking.
    """

    supports_clear_all = True

    def __init__(
        self,
        directory: Path,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        user_id: str = DEFAULT_USER_ID,
    ) -> None:
        self._directory = Path(directory)
        self._key_prefix = key_prefix
        self._user_id = user_id

    @property
    def user_id(self) -> str:
        return self._user_id

    async def save_result(self, result: QuizResult) -> LoadedQuizResult:
        loaded = LoadedQuizResult.from_result(result, user_id=self._user_id)
        try:
            await asyncio.to_thread(self._save_sync, loaded)
        except OSError as exc:
            logger.exception("Failed to save result for quiz '%s'", result.quiz_id)
            raise StorageError(f"Failed to save quiz result: {exc}") from exc

        logger.info("Saved attempt %s of quiz '%s'", result.attempt_number, result.quiz_id)
        return loaded

    async def load_result(
        self,
        quiz_id: str,
        user_id: str | None = None,
        attempt_number: int | None = None,
    ) -> LoadedQuizResult | None:
        return await asyncio.to_thread(self._load_sync, quiz_id, user_id or self._user_id, attempt_number)

    async def load_all_results(
        self, quiz_id: str, user_id: str | None = None
    ) -> list[LoadedQuizResult]:
        user = user_id or self._user_id
        return await asyncio.to_thread(self._load_all_sync, quiz_id, user)

    async def delete_result(
        self,
        quiz_id: str,
        user_id: str | None = None,
        attempt_number: int | None = None,
    ) -> None:
        try:
            await asyncio.to_thread(self._delete_sync, quiz_id, user_id or self._user_id, attempt_number)
        except OSError as exc:
            logger.exception("Failed to delete results for quiz '%s'", quiz_id)
            raise StorageError(f"Failed to delete quiz result: {exc}") from exc

    async def clear_all(self) -> None:
        if not self._directory.exists():
            return
        try:
            await asyncio.to_thread(self._clear_sync)
        except OSError as exc:
            logger.exception("Failed to clear quiz results")
            raise StorageError(f"Failed to clear quiz results: {exc}") from exc
        logger.info("Cleared all quiz results for user '%s'", self._user_id)

    # --- Blocking work, run in a worker thread ---

    def _save_sync(self, loaded: LoadedQuizResult) -> None:
        document = result_to_dict(loaded)
        self._directory.mkdir(parents=True, exist_ok=True)
        self._write_json(self._path(loaded.quiz_id, self._user_id, loaded.attempt_number), document)
        self._write_json(self._path(loaded.quiz_id, self._user_id), document)
        index = self._read_index(self._user_id)
        attempts = set(index.get(loaded.quiz_id, []))
        attempts.add(loaded.attempt_number)
        index[loaded.quiz_id] = sorted(attempts)
        self._write_json(self._index_path(self._user_id), index)

    def _load_sync(self, quiz_id: str, user_id: str, attempt_number: int | None) -> LoadedQuizResult | None:
        path = self._path(quiz_id, user_id, attempt_number)
        data = self._read_json(path)
        if data is None:
            return None
        try:
            return result_from_dict(data)
        except ResultFormatError as exc:
            raise StorageError(f"Stored result {path.name} is corrupt: {exc}") from exc

    def _load_all_sync(self, quiz_id: str, user_id: str) -> list[LoadedQuizResult]:
        results: list[LoadedQuizResult] = []
        for attempt_number in self._read_index(user_id).get(quiz_id, []):
            result = self._load_sync(quiz_id, user_id, attempt_number)
            if result is not None:
                results.append(result)
        return sorted(results, key=lambda r: r.attempt_number)

    def _delete_sync(self, quiz_id: str, user: str, attempt_number: int | None) -> None:
        index = self._read_index(user)
        if attempt_number is not None:
            self._path(quiz_id, user, attempt_number).unlink(missing_ok=True)
            remaining = [n for n in index.get(quiz_id, []) if n != attempt_number]
            if remaining:
                index[quiz_id] = remaining
            else:
                index.pop(quiz_id, None)
        else:
            for attempt in index.pop(quiz_id, []):
                self._path(quiz_id, user, attempt).unlink(missing_ok=True)
            self._path(quiz_id, user).unlink(missing_ok=True)
        if self._directory.exists():
            self._write_json(self._index_path(user), index)

    def _clear_sync(self) -> None:
        prefix = f"{self._key_prefix}_{_safe(self._user_id)}_"
        for path in self._directory.glob(f"{prefix}*{RESULT_FILE_SUFFIX}"):
            path.unlink(missing_ok=True)

    # --- File helpers ---

    def _path(self, quiz_id: str, user_id: str, attempt_number: int | None = None) -> Path:
        suffix = f"attempt_{attempt_number}" if attempt_number else "latest"
        name = f"{self._key_prefix}_{_safe(user_id)}_{_safe(quiz_id)}_{suffix}{RESULT_FILE_SUFFIX}"
        return self._directory / name

    def _index_path(self, user_id: str) -> Path:
        return self._directory / f"{self._key_prefix}_{_safe(user_id)}_index{RESULT_FILE_SUFFIX}"

    def _read_index(self, user_id: str) -> dict[str, list[int]]:
        data = self._read_json(self._index_path(user_id))
        if not isinstance(data, dict):
            return {}
        return {str(key): [int(n) for n in value] for key, value in data.items()}

    @staticmethod
    def _read_json(path: Path) -> Any:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Failed to read {path.name}: {exc}") from exc
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Stored file {path.name} is not valid JSON") from exc

    @staticmethod
    def _write_json(path: Path, data: Any) -> None:
        path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


def _safe(identifier: str) -> str:
    return _UNSAFE_CHARS.sub("_", identifier)
