"""Tests for the quiz results HTTP service."""

from __future__ import annotations

from fastapi.testclient import TestClient
import pytest
import uvicorn

from conftest import make_result
from quiz_engine.core.result_codec import result_to_dict
from quiz_engine.server.api_server import create_api_app, start_api_server
from quiz_engine.storage.adapter import StorageError
from quiz_engine.storage.local_adapter import LocalFileQuizAdapter


@pytest.fixture
def client(tmp_path) -> TestClient:
    return TestClient(create_api_app(tmp_path))


def _body(attempt_number: int = 1, score: float = 10.0, user_id: str | None = "alice") -> dict:
    return result_to_dict(make_result(attempt_number=attempt_number, score=score), user_id=user_id)


class TestSaveResult:
    def test_save_returns_stored_result(self, client):
        response = client.post("/quiz-results", json=_body())
        assert response.status_code == 201
        data = response.json()
        assert data["quizId"] == "quiz-1"
        assert data["userId"] == "alice"
        assert data["gradedAnswers"][0][0] == "q1"

    def test_missing_fields_are_rejected(self, client):
        response = client.post("/quiz-results", json={"quizId": "quiz-1"})
        assert response.status_code == 422

    def test_invalid_timestamp_is_rejected(self, client):
        body = _body()
        body["submittedAt"] = "not a date"
        response = client.post("/quiz-results", json=body)
        assert response.status_code == 422

    def test_default_user(self, client, tmp_path):
        client.post("/quiz-results", json=_body(user_id=None))
        assert any("default_user" in path.name for path in tmp_path.iterdir())


class TestLoadResult:
    def test_latest_and_specific_attempt(self, client):
        client.post("/quiz-results", json=_body(attempt_number=1, score=3))
        client.post("/quiz-results", json=_body(attempt_number=2, score=7))

        latest = client.get("/quiz-results", params={"quizId": "quiz-1", "userId": "alice"})
        assert latest.status_code == 200
        assert latest.json()["attemptNumber"] == 2

        first = client.get(
            "/quiz-results", params={"quizId": "quiz-1", "userId": "alice", "attemptNumber": 1}
        )
        assert first.json()["score"] == 3

    def test_all_attempts(self, client):
        client.post("/quiz-results", json=_body(attempt_number=2))
        client.post("/quiz-results", json=_body(attempt_number=1))
        response = client.get(
            "/quiz-results", params={"quizId": "quiz-1", "userId": "alice", "all": "true"}
        )
        assert [item["attemptNumber"] for item in response.json()] == [1, 2]

    def test_missing_result_is_404(self, client):
        response = client.get("/quiz-results", params={"quizId": "unknown", "userId": "alice"})
        assert response.status_code == 404

    def test_quiz_id_is_required(self, client):
        assert client.get("/quiz-results").status_code == 422

    def test_storage_failure_is_500(self, client, monkeypatch):
        async def broken(self, *args, **kwargs):
            raise StorageError("disk on fire")

        monkeypatch.setattr(LocalFileQuizAdapter, "load_result", broken)
        response = client.get("/quiz-results", params={"quizId": "quiz-1"})
        assert response.status_code == 500
        assert response.json()["detail"] == "disk on fire"


class TestDeleteResult:
    def test_delete_attempt(self, client):
        client.post("/quiz-results", json=_body(attempt_number=1))
        client.post("/quiz-results", json=_body(attempt_number=2))

        response = client.delete(
            "/quiz-results", params={"quizId": "quiz-1", "userId": "alice", "attemptNumber": 1}
        )
        assert response.status_code == 204
        remaining = client.get(
            "/quiz-results", params={"quizId": "quiz-1", "userId": "alice", "all": "true"}
        ).json()
        assert [item["attemptNumber"] for item in remaining] == [2]

    def test_delete_everything(self, client):
        client.post("/quiz-results", json=_body())
        client.delete("/quiz-results", params={"quizId": "quiz-1", "userId": "alice"})
        response = client.get("/quiz-results", params={"quizId": "quiz-1", "userId": "alice"})
        assert response.status_code == 404


def test_start_api_server_runs_uvicorn_in_background(tmp_path, monkeypatch):
    started = []
    monkeypatch.setattr(uvicorn.Server, "run", lambda self: started.append(self.config.port))
    thread = start_api_server(tmp_path, host="127.0.0.1", port=8765)
    thread.join(timeout=5)
    assert thread.daemon
    assert started == [8765]
