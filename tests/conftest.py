"""Shared pytest fixtures for quiz engine tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from quiz_engine.core.models import (
    MultipleChoiceOption,
    MultipleChoiceQuestion,
    QuestionAnswer,
    QuestionSubmission,
    QuizConfig,
    QuizResult,
    SubmissionStatus,
    TrueFalseQuestion,
)


class FakeClock:
    """Manually advanced replacement for ``time.monotonic``."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_choice_question(question_id: str = "q1", points: float = 10) -> MultipleChoiceQuestion:
    return MultipleChoiceQuestion(
        id=question_id,
        prompt="Pick B",
        points=points,
        options=(
            MultipleChoiceOption("A", "Option A"),
            MultipleChoiceOption("B", "Option B", is_correct=True),
            MultipleChoiceOption("C", "Option C"),
        ),
    )


def make_quiz(**overrides) -> QuizConfig:
    """Two-question quiz: 10 point multiple choice ("B") and 5 point true/false (True)."""
    fields = {
        "id": "quiz-1",
        "title": "Sample quiz",
        "questions": (
            make_choice_question(),
            TrueFalseQuestion(id="q2", prompt="Sky is blue", points=5, correct_answer=True),
        ),
    }
    fields.update(overrides)
    return QuizConfig(**fields)


def make_result(
    quiz_id: str = "quiz-1",
    attempt_number: int = 1,
    score: float = 10.0,
    max_score: float = 15.0,
) -> QuizResult:
    submitted_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    answer = QuestionAnswer(
        question_id="q1",
        value="B",
        is_answered=True,
        attempt_number=attempt_number,
        timestamp=submitted_at,
    )
    submission = QuestionSubmission(
        question_id="q1",
        answer=answer,
        status=SubmissionStatus.GRADED,
        max_score=10.0,
        score=score,
        submitted_at=submitted_at,
        graded_at=submitted_at,
    )
    return QuizResult(
        quiz_id=quiz_id,
        answers=(answer,),
        submissions=(submission,),
        score=score,
        max_score=max_score,
        percentage=score / max_score * 100,
        is_passed=True,
        time_spent=42,
        attempt_number=attempt_number,
        submitted_at=submitted_at,
    )


@pytest.fixture
def quiz() -> QuizConfig:
    return make_quiz()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
