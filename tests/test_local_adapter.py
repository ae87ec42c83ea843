"""Tests for the JSON file storage backend."""

from __future__ import annotations

import threading

import pytest

from conftest import make_result
from quiz_engine.storage.adapter import StorageError
from quiz_engine.storage.local_adapter import LocalFileQuizAdapter


@pytest.fixture
def adapter(tmp_path) -> LocalFileQuizAdapter:
    return LocalFileQuizAdapter(tmp_path, user_id="alice")


class TestLocalFileQuizAdapter:
    @pytest.mark.asyncio
    async def test_save_and_load_latest(self, adapter, tmp_path):
        saved = await adapter.save_result(make_result(attempt_number=1, score=5))
        await adapter.save_result(make_result(attempt_number=2, score=10))

        assert saved.user_id == "alice"
        latest = await adapter.load_result("quiz-1")
        assert latest.attempt_number == 2
        assert latest.score == 10
        assert (tmp_path / "lms_quiz_alice_quiz-1_attempt_1.json").exists()
        assert (tmp_path / "lms_quiz_alice_index.json").exists()

    @pytest.mark.asyncio
    async def test_load_specific_attempt(self, adapter):
        await adapter.save_result(make_result(attempt_number=1, score=5))
        await adapter.save_result(make_result(attempt_number=2, score=10))
        first = await adapter.load_result("quiz-1", attempt_number=1)
        assert first.score == 5

    @pytest.mark.asyncio
    async def test_missing_result_is_none(self, adapter):
        assert await adapter.load_result("nothing") is None
        assert await adapter.load_all_results("nothing") == []

    @pytest.mark.asyncio
    async def test_load_all_sorted(self, adapter):
        for attempt in (3, 1, 2):
            await adapter.save_result(make_result(attempt_number=attempt))
        results = await adapter.load_all_results("quiz-1")
        assert [r.attempt_number for r in results] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_users_are_separated(self, adapter, tmp_path):
        await adapter.save_result(make_result())
        other = LocalFileQuizAdapter(tmp_path, user_id="bob")
        assert await other.load_result("quiz-1") is None
        assert await other.load_result("quiz-1", user_id="alice") is not None

    @pytest.mark.asyncio
    async def test_delete_one_attempt(self, adapter):
        await adapter.save_result(make_result(attempt_number=1))
        await adapter.save_result(make_result(attempt_number=2))
        await adapter.delete_result("quiz-1", attempt_number=1)
        results = await adapter.load_all_results("quiz-1")
        assert [r.attempt_number for r in results] == [2]

    @pytest.mark.asyncio
    async def test_delete_all_attempts(self, adapter):
        await adapter.save_result(make_result(attempt_number=1))
        await adapter.save_result(make_result(attempt_number=2))
        await adapter.delete_result("quiz-1")
        assert await adapter.load_result("quiz-1") is None
        assert await adapter.load_all_results("quiz-1") == []

    @pytest.mark.asyncio
    async def test_clear_all(self, adapter, tmp_path):
        await adapter.save_result(make_result(quiz_id="a"))
        await adapter.save_result(make_result(quiz_id="b"))
        await adapter.clear_all()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_storage_error(self, adapter, tmp_path):
        await adapter.save_result(make_result())
        (tmp_path / "lms_quiz_alice_quiz-1_latest.json").write_text("{broken", encoding="utf-8")
        with pytest.raises(StorageError):
            await adapter.load_result("quiz-1")

    @pytest.mark.asyncio
    async def test_unsafe_identifiers_are_sanitized(self, tmp_path):
        adapter = LocalFileQuizAdapter(tmp_path, user_id="a/b")
        await adapter.save_result(make_result(quiz_id="../escape"))
        assert all(path.parent == tmp_path for path in tmp_path.iterdir())
        assert (await adapter.load_result("../escape")).quiz_id == "../escape"

    @pytest.mark.asyncio
    async def test_file_writes_leave_the_event_loop_thread(self, adapter, monkeypatch):
        writer_threads = []
        original = LocalFileQuizAdapter._write_json

        def recording_write(path, data):
            writer_threads.append(threading.get_ident())
            original(path, data)

        monkeypatch.setattr(LocalFileQuizAdapter, "_write_json", staticmethod(recording_write))
        await adapter.save_result(make_result())
        assert writer_threads
        assert threading.get_ident() not in writer_threads
