"""Request schemas for the quiz results API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FeedbackPayload(_CamelModel):
    type: str
    message: str


class AnswerPayload(_CamelModel):
    """A single recorded answer. ``value`` depends on the question type."""

    question_id: str
    value: Any = None
    is_answered: bool = False
    attempt_number: int = Field(default=1, ge=1)
    time_spent: float = Field(default=0.0, ge=0)
    timestamp: str | None = None


class SubmissionPayload(_CamelModel):
    question_id: str
    answer: AnswerPayload
    status: str
    max_score: float = Field(ge=0)
    feedback: list[FeedbackPayload] = Field(default_factory=list)
    score: float | None = None
    submitted_at: str | None = None
    graded_at: str | None = None
    graded_by: str | None = None


class QuizResultPayload(_CamelModel):
    """Body of ``POST /quiz-results``."""

    quiz_id: str = Field(min_length=1)
    user_id: str | None = None
    attempt_number: int = Field(default=1, ge=1)
    score: float = Field(ge=0)
    max_score: float = Field(ge=0)
    percentage: float = Field(ge=0, le=100)
    is_passed: bool
    time_spent: float = Field(default=0.0, ge=0)
    submitted_at: str
    answers: list[AnswerPayload] = Field(default_factory=list)
    submissions: list[SubmissionPayload] = Field(default_factory=list)
    # Either a list of [question id, graded answer] pairs or a mapping.
    graded_answers: list[Any] | dict[str, Any] | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
