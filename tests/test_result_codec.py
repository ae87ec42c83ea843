"""Tests for the quiz result wire format."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from conftest import make_result
from quiz_engine.core.models import LoadedQuizResult, SubmissionStatus
from quiz_engine.core.result_codec import ResultFormatError, result_from_dict, result_to_dict


class TestResultToDict:
    def test_uses_camel_case_keys(self):
        data = result_to_dict(make_result(), user_id="alice")
        assert data["quizId"] == "quiz-1"
        assert data["attemptNumber"] == 1
        assert data["maxScore"] == 15.0
        assert data["isPassed"] is True
        assert data["userId"] == "alice"
        assert data["submittedAt"] == "2024-05-01T12:00:00+00:00"
        assert data["answers"][0] == {
            "questionId": "q1",
            "value": "B",
            "isAnswered": True,
            "attemptNumber": 1,
            "timeSpent": 0.0,
            "timestamp": "2024-05-01T12:00:00+00:00",
        }
        assert data["submissions"][0]["status"] == "graded"
        assert "gradedAnswers" not in data

    def test_loaded_result_includes_graded_answers(self):
        loaded = LoadedQuizResult.from_result(make_result(), user_id="bob")
        data = result_to_dict(loaded)
        assert data["userId"] == "bob"
        assert data["gradedAnswers"] == [["q1", {"isCorrect": True, "score": 10.0, "feedback": None}]]


class TestResultFromDict:
    def test_decodes_stored_result(self):
        loaded = result_from_dict(result_to_dict(make_result(), user_id="alice"))
        assert loaded.quiz_id == "quiz-1"
        assert loaded.user_id == "alice"
        assert loaded.submissions[0].status is SubmissionStatus.GRADED
        assert loaded.graded_answers["q1"].is_correct
        assert loaded.submitted_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_accepts_javascript_timestamps(self):
        data = result_to_dict(make_result())
        data["submittedAt"] = "2024-05-01T12:00:00.000Z"
        assert result_from_dict(data).submitted_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_graded_answers_as_mapping(self):
        data = result_to_dict(make_result())
        data["gradedAnswers"] = {"q1": {"isCorrect": False, "score": 2, "feedback": "Close"}}
        graded = result_from_dict(data).graded_answers["q1"]
        assert graded.score == 2.0
        assert graded.feedback == "Close"

    def test_missing_required_key(self):
        data = result_to_dict(make_result())
        del data["quizId"]
        with pytest.raises(ResultFormatError):
            result_from_dict(data)

    def test_bad_timestamp(self):
        data = result_to_dict(make_result())
        data["submittedAt"] = "yesterday"
        with pytest.raises(ResultFormatError):
            result_from_dict(data)
