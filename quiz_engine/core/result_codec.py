"""Conversion of quiz results to and from the camelCase wire format.

The dictionaries produced here are what storage backends persist and what the
results API exchanges, so field names must stay stable across versions:
stored attempts have to remain loadable.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from quiz_engine.core.models import (
    Feedback,
    FeedbackType,
    GradedAnswer,
    LoadedQuizResult,
    QuestionAnswer,
    QuestionSubmission,
    QuizResult,
    SubmissionStatus,
)


class ResultFormatError(ValueError):
    """Raised when a stored or received result cannot be decoded."""


def result_to_dict(result: QuizResult, user_id: str | None = None) -> dict[str, Any]:
    data: dict[str, Any] = {
        "quizId": result.quiz_id,
        "attemptNumber": result.attempt_number,
        "score": result.score,
        "maxScore": result.max_score,
        "percentage": result.percentage,
        "isPassed": result.is_passed,
        "timeSpent": result.time_spent,
        "submittedAt": _format_datetime(result.submitted_at),
        "answers": [answer_to_dict(answer) for answer in result.answers],
        "submissions": [submission_to_dict(submission) for submission in result.submissions],
    }
    if isinstance(result, LoadedQuizResult):
        data["gradedAnswers"] = [
            [question_id, _graded_answer_to_dict(graded)]
            for question_id, graded in result.graded_answers.items()
        ]
        user_id = user_id or result.user_id
    if user_id is not None:
        data["userId"] = user_id
    return data


def result_from_dict(data: Mapping[str, Any]) -> LoadedQuizResult:
    try:
        result = QuizResult(
            quiz_id=str(data["quizId"]),
            answers=tuple(answer_from_dict(item) for item in data.get("answers") or []),
            submissions=tuple(submission_from_dict(item) for item in data.get("submissions") or []),
            score=float(data["score"]),
            max_score=float(data["maxScore"]),
            percentage=float(data.get("percentage", 0.0)),
            is_passed=bool(data.get("isPassed", False)),
            time_spent=int(data.get("timeSpent", 0)),
            attempt_number=int(data["attemptNumber"]),
            submitted_at=_parse_datetime(data["submittedAt"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ResultFormatError(f"Invalid quiz result payload: {exc}") from exc

    loaded = LoadedQuizResult.from_result(result, user_id=data.get("userId"))
    graded_raw = data.get("gradedAnswers")
    if not graded_raw:
        return loaded

    entries = graded_raw.items() if isinstance(graded_raw, Mapping) else graded_raw
    try:
        graded = {
            str(question_id): GradedAnswer(
                is_correct=bool(item.get("isCorrect", False)),
                score=float(item.get("score") or 0.0),
                feedback=item.get("feedback"),
            )
            for question_id, item in entries
        }
    except (AttributeError, TypeError, ValueError) as exc:
        raise ResultFormatError(f"Invalid graded answers: {exc}") from exc
    return LoadedQuizResult(
        quiz_id=loaded.quiz_id,
        answers=loaded.answers,
        submissions=loaded.submissions,
        score=loaded.score,
        max_score=loaded.max_score,
        percentage=loaded.percentage,
        is_passed=loaded.is_passed,
        time_spent=loaded.time_spent,
        attempt_number=loaded.attempt_number,
        submitted_at=loaded.submitted_at,
        graded_answers=graded,
        user_id=loaded.user_id,
    )


def answer_to_dict(answer: QuestionAnswer) -> dict[str, Any]:
    data: dict[str, Any] = {
        "questionId": answer.question_id,
        "value": answer.value,
        "isAnswered": answer.is_answered,
        "attemptNumber": answer.attempt_number,
        "timeSpent": answer.time_spent,
    }
    if answer.timestamp is not None:
        data["timestamp"] = _format_datetime(answer.timestamp)
    return data


def answer_from_dict(data: Mapping[str, Any]) -> QuestionAnswer:
    timestamp = data.get("timestamp")
    return QuestionAnswer(
        question_id=str(data["questionId"]),
        value=data.get("value"),
        is_answered=bool(data.get("isAnswered", False)),
        attempt_number=int(data.get("attemptNumber", 1)),
        time_spent=float(data.get("timeSpent") or 0.0),
        timestamp=_parse_datetime(timestamp) if timestamp else None,
    )


def submission_to_dict(submission: QuestionSubmission) -> dict[str, Any]:
    data: dict[str, Any] = {
        "questionId": submission.question_id,
        "answer": answer_to_dict(submission.answer),
        "status": submission.status.value,
        "maxScore": submission.max_score,
        "feedback": [{"type": item.type.value, "message": item.message} for item in submission.feedback],
    }
    if submission.score is not None:
        data["score"] = submission.score
    for key, value in (
        ("submittedAt", submission.submitted_at),
        ("gradedAt", submission.graded_at),
    ):
        if value is not None:
            data[key] = _format_datetime(value)
    if submission.graded_by is not None:
        data["gradedBy"] = submission.graded_by
    return data


def submission_from_dict(data: Mapping[str, Any]) -> QuestionSubmission:
    score = data.get("score")
    submitted_at = data.get("submittedAt")
    graded_at = data.get("gradedAt")
    return QuestionSubmission(
        question_id=str(data["questionId"]),
        answer=answer_from_dict(data["answer"]),
        status=SubmissionStatus(data.get("status", SubmissionStatus.SUBMITTED.value)),
        max_score=float(data["maxScore"]),
        score=float(score) if score is not None else None,
        feedback=tuple(
            Feedback(type=FeedbackType(item["type"]), message=item["message"])
            for item in data.get("feedback") or []
        ),
        submitted_at=_parse_datetime(submitted_at) if submitted_at else None,
        graded_at=_parse_datetime(graded_at) if graded_at else None,
        graded_by=data.get("gradedBy"),
    )


def _graded_answer_to_dict(graded: GradedAnswer) -> dict[str, Any]:
    return {"isCorrect": graded.is_correct, "score": graded.score, "feedback": graded.feedback}


def _format_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_datetime(value: str) -> datetime:
    # JavaScript clients send a trailing "Z"
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
