"""Domain models for the quiz engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, ClassVar, Union

from quiz_engine.constants.quiz_constants import DEFAULT_AUTO_SAVE_INTERVAL_SECONDS


class QuestionConfigError(ValueError):
    """Raised when a question or quiz definition is malformed."""


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"
    ESSAY = "essay"
    FILL_IN_BLANK = "fill-in-blank"
    MATCHING = "matching"


class SubmissionMode(str, Enum):
    QUESTION_LEVEL = "question-level"
    QUIZ_LEVEL = "quiz-level"
    HYBRID = "hybrid"


class SubmissionStatus(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    SUBMITTED = "submitted"
    GRADED = "graded"

    @property
    def is_terminal(self) -> bool:
        return self in (SubmissionStatus.SUBMITTED, SubmissionStatus.GRADED)


class FeedbackType(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    PARTIAL = "partial"
    HINT = "hint"


class ValidationRuleType(str, Enum):
    REQUIRED = "required"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    PATTERN = "pattern"
    CUSTOM = "custom"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def has_answer_value(value: Any) -> bool:
    """Return True when ``value`` counts as an answer (not None and not empty)."""
    if value is None:
        return False
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) > 0
    return True


def compute_percentage(score: float, max_score: float) -> float:
    return (score / max_score) * 100 if max_score > 0 else 0.0


@dataclass(slots=True, frozen=True)
class Feedback:
    """Feedback entry attached to a submission."""

    type: FeedbackType
    message: str


@dataclass(slots=True, frozen=True)
class QuestionFeedback:
    """Author-provided feedback messages per grading outcome."""

    correct: str | None = None
    incorrect: str | None = None
    partial: str | None = None


@dataclass(slots=True, frozen=True)
class ValidationRule:
    """Single rule consumed by the per-field validator."""

    type: ValidationRuleType
    message: str
    value: Any = None
    validate: Callable[[Any], bool] | None = None


# --- Question definitions ---


@dataclass(slots=True, frozen=True, kw_only=True)
class BaseQuestion:
    """Fields shared by every question variant."""

    type: ClassVar[QuestionType]

    id: str
    prompt: str
    points: float
    title: str | None = None
    instructions: str | None = None
    required: bool = False
    difficulty: str | None = None
    tags: tuple[str, ...] = ()
    category: str | None = None
    hints: tuple[str, ...] = ()
    feedback: QuestionFeedback | None = None
    time_limit: int | None = None  # seconds
    max_attempts: int | None = None
    validation_rules: tuple[ValidationRule, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            raise QuestionConfigError("Question id must not be empty.")
        if self.points < 0:
            raise QuestionConfigError(f"Question '{self.id}' has negative points.")
        if self.time_limit is not None and self.time_limit <= 0:
            raise QuestionConfigError(f"Question '{self.id}' time limit must be positive.")
        self._check_variant()

    def _check_variant(self) -> None:
        """Variant-specific validation hook."""


@dataclass(slots=True, frozen=True)
class MultipleChoiceOption:
    id: str
    text: str
    is_correct: bool = False
    feedback: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class MultipleChoiceQuestion(BaseQuestion):
    type: ClassVar[QuestionType] = QuestionType.MULTIPLE_CHOICE

    options: tuple[MultipleChoiceOption, ...]
    allow_multiple: bool = False
    shuffle_options: bool = False
    min_selections: int | None = None
    max_selections: int | None = None

    @property
    def correct_option_ids(self) -> list[str]:
        return [option.id for option in self.options if option.is_correct]

    def _check_variant(self) -> None:
        if not self.options:
            raise QuestionConfigError(f"Question '{self.id}' must define at least one option.")
        _ensure_unique_ids(self.id, [option.id for option in self.options], "option")
        if not any(option.is_correct for option in self.options):
            raise QuestionConfigError(f"Question '{self.id}' must mark at least one option as correct.")


@dataclass(slots=True, frozen=True, kw_only=True)
class TrueFalseQuestion(BaseQuestion):
    type: ClassVar[QuestionType] = QuestionType.TRUE_FALSE

    correct_answer: bool


@dataclass(slots=True, frozen=True, kw_only=True)
class ShortAnswerQuestion(BaseQuestion):
    type: ClassVar[QuestionType] = QuestionType.SHORT_ANSWER

    correct_answers: tuple[str, ...] = ()
    case_sensitive: bool = False
    trim_whitespace: bool = False
    max_length: int | None = None
    min_length: int | None = None
    pattern: str | None = None
    placeholder: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class EssayQuestion(BaseQuestion):
    type: ClassVar[QuestionType] = QuestionType.ESSAY

    min_words: int | None = None
    max_words: int | None = None
    min_characters: int | None = None
    max_characters: int | None = None
    placeholder: str | None = None


@dataclass(slots=True, frozen=True)
class FillInBlankSegment:
    """Either a literal ``text`` segment or a ``blank`` to be filled in."""

    type: str
    content: str | None = None
    id: str | None = None
    correct_answers: tuple[str, ...] = ()
    case_sensitive: bool = False
    placeholder: str | None = None

    @property
    def is_blank(self) -> bool:
        return self.type == "blank"


@dataclass(slots=True, frozen=True, kw_only=True)
class FillInBlankQuestion(BaseQuestion):
    type: ClassVar[QuestionType] = QuestionType.FILL_IN_BLANK

    segments: tuple[FillInBlankSegment, ...]

    @property
    def blanks(self) -> list[FillInBlankSegment]:
        return [segment for segment in self.segments if segment.is_blank]

    def _check_variant(self) -> None:
        for segment in self.segments:
            if segment.type not in ("text", "blank"):
                raise QuestionConfigError(
                    f"Question '{self.id}' has unknown segment type '{segment.type}'."
                )
            if segment.is_blank and not segment.id:
                raise QuestionConfigError(f"Question '{self.id}' has a blank without an id.")
        _ensure_unique_ids(self.id, [blank.id or "" for blank in self.blanks], "blank")


@dataclass(slots=True, frozen=True)
class MatchingPair:
    id: str
    left: str
    right: str


@dataclass(slots=True, frozen=True, kw_only=True)
class MatchingQuestion(BaseQuestion):
    type: ClassVar[QuestionType] = QuestionType.MATCHING

    pairs: tuple[MatchingPair, ...]
    randomize_left: bool = False
    randomize_right: bool = False

    def _check_variant(self) -> None:
        _ensure_unique_ids(self.id, [pair.id for pair in self.pairs], "pair")


QuestionConfig = Union[
    MultipleChoiceQuestion,
    TrueFalseQuestion,
    ShortAnswerQuestion,
    EssayQuestion,
    FillInBlankQuestion,
    MatchingQuestion,
]


def _ensure_unique_ids(question_id: str, ids: list[str], label: str) -> None:
    seen: set[str] = set()
    for item_id in ids:
        if item_id in seen:
            raise QuestionConfigError(f"Question '{question_id}' has duplicate {label} id '{item_id}'.")
        seen.add(item_id)


# --- Answers, submissions and grading ---


@dataclass(slots=True)
class QuestionAnswer:
    """Current answer for one question. Replaced wholesale on every edit."""

    question_id: str
    value: Any
    is_answered: bool
    attempt_number: int = 1
    time_spent: float = 0.0  # seconds
    timestamp: datetime | None = None

    @classmethod
    def create(
        cls,
        question_id: str,
        value: Any,
        attempt_number: int = 1,
        time_spent: float = 0.0,
    ) -> QuestionAnswer:
        return cls(
            question_id=question_id,
            value=value,
            is_answered=has_answer_value(value),
            attempt_number=attempt_number,
            time_spent=time_spent,
            timestamp=utc_now(),
        )

    @classmethod
    def empty(cls, question_id: str, attempt_number: int = 1) -> QuestionAnswer:
        """Placeholder used for questions that were never answered."""
        return cls(
            question_id=question_id,
            value=None,
            is_answered=False,
            attempt_number=attempt_number,
        )


@dataclass(slots=True, frozen=True)
class QuestionSubmission:
    """Snapshot of an answer at submit time plus its grading outcome."""

    question_id: str
    answer: QuestionAnswer
    status: SubmissionStatus
    max_score: float
    score: float | None = None
    feedback: tuple[Feedback, ...] = ()
    submitted_at: datetime | None = None
    graded_at: datetime | None = None
    graded_by: str | None = None


@dataclass(slots=True, frozen=True)
class GradingResult:
    is_correct: bool
    is_partially_correct: bool
    score: float
    max_score: float
    feedback: str | None = None


@dataclass(slots=True, frozen=True)
class QuizGrade:
    """Quiz-level aggregation of per-question grading results."""

    total_score: float
    max_score: float
    percentage: float
    results: dict[str, GradingResult]


# --- Quiz definition, state and results ---


@dataclass(slots=True, frozen=True, kw_only=True)
class QuizConfig:
    id: str
    title: str
    questions: tuple[QuestionConfig, ...]
    submission_mode: SubmissionMode = SubmissionMode.QUIZ_LEVEL
    allow_navigation: bool = False
    allow_skip: bool = False
    shuffle_questions: bool = False
    time_limit: int | None = None  # seconds
    require_all_answered: bool = False
    allow_review: bool = True
    passing_score: float | None = None  # percentage, 0-100
    show_score: bool = True
    show_correct_answers: bool = False
    description: str | None = None
    instructions: str | None = None
    max_attempts: int | None = None
    show_timer: bool = True
    show_feedback_on_submit: bool = False
    auto_save_interval: float = DEFAULT_AUTO_SAVE_INTERVAL_SECONDS  # 0 disables auto-save

    def __post_init__(self) -> None:
        if not self.id:
            raise QuestionConfigError("Quiz id must not be empty.")
        _ensure_unique_ids(self.id, [question.id for question in self.questions], "question")
        if self.passing_score is not None and not 0 <= self.passing_score <= 100:
            raise QuestionConfigError("Passing score must be between 0 and 100.")
        if self.time_limit is not None and self.time_limit <= 0:
            raise QuestionConfigError("Quiz time limit must be positive.")
        if self.auto_save_interval < 0:
            raise QuestionConfigError("Auto-save interval cannot be negative.")

    @property
    def max_score(self) -> float:
        return sum(question.points for question in self.questions)

    @property
    def question_ids(self) -> list[str]:
        return [question.id for question in self.questions]

    def get_question(self, question_id: str) -> QuestionConfig | None:
        return next((q for q in self.questions if q.id == question_id), None)


@dataclass(slots=True)
class QuizState:
    """Authoritative state of one quiz session."""

    config: QuizConfig
    max_score: float
    current_question_index: int = 0
    answers: dict[str, QuestionAnswer] = field(default_factory=dict)
    submissions: dict[str, QuestionSubmission] = field(default_factory=dict)
    status: SubmissionStatus = SubmissionStatus.NOT_STARTED
    attempt_number: int = 1
    total_time_spent: int = 0  # seconds
    score: float | None = None
    is_passed: bool | None = None
    started_at: datetime | None = None
    submitted_at: datetime | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class QuizResult:
    """Immutable export of a graded quiz attempt."""

    quiz_id: str
    answers: tuple[QuestionAnswer, ...]
    submissions: tuple[QuestionSubmission, ...]
    score: float
    max_score: float
    percentage: float
    is_passed: bool
    time_spent: int
    attempt_number: int
    submitted_at: datetime


@dataclass(slots=True, frozen=True)
class GradedAnswer:
    is_correct: bool
    score: float
    feedback: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class LoadedQuizResult(QuizResult):
    """A result as returned by a storage backend."""

    graded_answers: dict[str, GradedAnswer] = field(default_factory=dict)
    user_id: str | None = None

    @classmethod
    def from_result(cls, result: QuizResult, user_id: str | None = None) -> LoadedQuizResult:
        graded = {
            submission.question_id: GradedAnswer(
                is_correct=submission.score == submission.max_score,
                score=submission.score or 0.0,
                feedback=submission.feedback[0].message if submission.feedback else None,
            )
            for submission in result.submissions
        }
        return cls(
            quiz_id=result.quiz_id,
            answers=result.answers,
            submissions=result.submissions,
            score=result.score,
            max_score=result.max_score,
            percentage=result.percentage,
            is_passed=result.is_passed,
            time_spent=result.time_spent,
            attempt_number=result.attempt_number,
            submitted_at=result.submitted_at,
            graded_answers=graded,
            user_id=user_id,
        )


@dataclass(slots=True, frozen=True)
class QuizProgress:
    total_questions: int
    answered_questions: int
    current_question_index: int
    percent_complete: float
    time_spent: int
    time_remaining: int | None = None
