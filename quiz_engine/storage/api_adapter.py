"""HTTP client for a remote quiz results backend."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

import httpx

from quiz_engine.constants.network_constants import (
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    RESULTS_ENDPOINT,
)
from quiz_engine.core.models import LoadedQuizResult, QuizResult
from quiz_engine.core.result_codec import result_from_dict, result_to_dict
from quiz_engine.storage.adapter import QuizStorageAdapter, StorageError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ApiEndpoints:
    save: str = RESULTS_ENDPOINT
    load: str = RESULTS_ENDPOINT
    load_all: str = RESULTS_ENDPOINT
    delete: str = RESULTS_ENDPOINT


class ApiQuizAdapter(QuizStorageAdapter):
    """Talks to a backend that follows the results HTTP convention.

    * save: ``POST`` with the full result body
    * load: ``GET`` with ``quizId``, optional ``userId`` and ``attemptNumber``;
      a 404 means there is no such result
    * load all: the same ``GET`` with ``all=true``
    * delete: ``DELETE`` with the load parameters
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        headers: dict[str, str] | None = None,
        user_id: str | None = None,
        endpoints: ApiEndpoints | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base = base_url.rstrip("/")
        self._user_id = user_id
        self._endpoints = endpoints or ApiEndpoints()
        request_headers = {"Content-Type": "application/json", **(headers or {})}
        if api_key:
            request_headers["Authorization"] = f"Bearer {api_key}"
        self._http = httpx.AsyncClient(
            base_url=self._base,
            headers=request_headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def save_result(self, result: QuizResult) -> LoadedQuizResult:
        body = result_to_dict(result, user_id=self._user_id)
        try:
            response = await self._http.post(self._endpoints.save, json=body)
            response.raise_for_status()
            loaded = result_from_dict(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.exception("Failed to save quiz result to API")
            raise StorageError("Failed to save quiz result to backend") from exc

        logger.info("Quiz result saved to API: %s", result.quiz_id)
        return loaded

    async def load_result(
        self,
        quiz_id: str,
        user_id: str | None = None,
        attempt_number: int | None = None,
    ) -> LoadedQuizResult | None:
        params = self._params(quiz_id, user_id, attempt_number)
        try:
            response = await self._http.get(self._endpoints.load, params=params)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return result_from_dict(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.exception("Failed to load quiz result from API")
            raise StorageError("Failed to load quiz result from backend") from exc

    async def load_all_results(
        self, quiz_id: str, user_id: str | None = None
    ) -> list[LoadedQuizResult]:
        params = self._params(quiz_id, user_id)
        params["all"] = "true"
        try:
            response = await self._http.get(self._endpoints.load_all, params=params)
            if response.status_code == 404:
                return []
            response.raise_for_status()
            data = response.json()
            results = [result_from_dict(item) for item in data] if isinstance(data, list) else []
        except (httpx.HTTPError, ValueError) as exc:
            logger.exception("Failed to load all quiz results from API")
            raise StorageError("Failed to load quiz results from backend") from exc
        return sorted(results, key=lambda r: r.attempt_number)

    async def delete_result(
        self,
        quiz_id: str,
        user_id: str | None = None,
        attempt_number: int | None = None,
    ) -> None:
        params = self._params(quiz_id, user_id, attempt_number)
        try:
            response = await self._http.delete(self._endpoints.delete, params=params)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.exception("Failed to delete quiz result from API")
            raise StorageError("Failed to delete quiz result from backend") from exc

    def _params(
        self, quiz_id: str, user_id: str | None, attempt_number: int | None = None
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"quizId": quiz_id}
        user = user_id or self._user_id
        if user:
            params["userId"] = user
        if attempt_number:
            params["attemptNumber"] = str(attempt_number)
        return params
