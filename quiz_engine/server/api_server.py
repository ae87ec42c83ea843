"""FastAPI server that stores and serves quiz results."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from threading import Thread
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Response
import uvicorn

from quiz_engine.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT, RESULTS_ENDPOINT
from quiz_engine.constants.storage_constants import DEFAULT_USER_ID
from quiz_engine.core.result_codec import ResultFormatError, result_from_dict, result_to_dict
from quiz_engine.server.schemas import QuizResultPayload
from quiz_engine.storage.adapter import StorageError
from quiz_engine.storage.local_adapter import LocalFileQuizAdapter

AdapterFactory = Callable[[str | None], LocalFileQuizAdapter]


def _get_adapter_factory_dependency(data_dir: Path):
    def factory(user_id: str | None) -> LocalFileQuizAdapter:
        return LocalFileQuizAdapter(data_dir, user_id=user_id or DEFAULT_USER_ID)

    def dependency() -> AdapterFactory:
        return factory

    return dependency


def create_api_app(data_dir: Path) -> FastAPI:
    """Create a FastAPI application that keeps results under ``data_dir``."""
    app = FastAPI(title="Quiz Engine Results API", version="0.1.0")
    adapter_dep = _get_adapter_factory_dependency(Path(data_dir))

    @app.post(RESULTS_ENDPOINT, status_code=201)
    async def save_result(
        payload: QuizResultPayload,
        adapters: AdapterFactory = Depends(adapter_dep),
    ) -> dict[str, object]:
        try:
            result = result_from_dict(payload.to_wire())
        except ResultFormatError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        adapter = adapters(payload.user_id)
        try:
            saved = await adapter.save_result(result)
        except StorageError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return result_to_dict(saved)

    @app.get(RESULTS_ENDPOINT, response_model=None)
    async def load_result(
        quiz_id: str = Query(alias="quizId", min_length=1),
        user_id: str | None = Query(default=None, alias="userId"),
        attempt_number: int | None = Query(default=None, alias="attemptNumber", ge=1),
        all_attempts: bool = Query(default=False, alias="all"),
        adapters: AdapterFactory = Depends(adapter_dep),
    ) -> Any:
        adapter = adapters(user_id)
        try:
            if all_attempts:
                results = await adapter.load_all_results(quiz_id)
                return [result_to_dict(result) for result in results]
            result = await adapter.load_result(quiz_id, attempt_number=attempt_number)
        except StorageError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        if result is None:
            raise HTTPException(status_code=404, detail="Quiz result not found.")
        return result_to_dict(result)

    @app.delete(RESULTS_ENDPOINT, status_code=204)
    async def delete_result(
        quiz_id: str = Query(alias="quizId", min_length=1),
        user_id: str | None = Query(default=None, alias="userId"),
        attempt_number: int | None = Query(default=None, alias="attemptNumber", ge=1),
        adapters: AdapterFactory = Depends(adapter_dep),
    ) -> Response:
        adapter = adapters(user_id)
        try:
            await adapter.delete_result(quiz_id, attempt_number=attempt_number)
        except StorageError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return Response(status_code=204)

    return app


def start_api_server(
    data_dir: Path,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(data_dir)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizResultsServer", daemon=True)
    thread.start()
    return thread
