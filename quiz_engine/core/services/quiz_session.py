"""Service owning the state of a single quiz attempt.

The session is a synchronous state machine::

    not-started -> in-progress -> graded
                              \\-> submitted

Writing an answer or navigating starts the quiz implicitly. ``submit_quiz``
grades inline and moves straight to ``graded``. Both ``submitted`` and
``graded`` are terminal; answer writes are ignored from then on until
:meth:`QuizSession.retake` starts a new attempt.

Listeners are called synchronously after the state has been updated, so a
listener always observes the change that triggered it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime
from enum import Enum
import logging

from quiz_engine.constants.quiz_constants import DEFAULT_PASSING_SCORE
from quiz_engine.core.grading import grade_quiz
from quiz_engine.core.models import (
    Feedback,
    FeedbackType,
    LoadedQuizResult,
    QuestionAnswer,
    QuestionConfig,
    QuestionSubmission,
    QuizConfig,
    QuizProgress,
    QuizResult,
    QuizState,
    SubmissionStatus,
    utc_now,
)
from quiz_engine.core.progress import compute_progress

logger = logging.getLogger(__name__)


class SessionChange(str, Enum):
    """Kind of state change reported to session listeners."""

    ANSWER = "answer"
    NAVIGATION = "navigation"
    SUBMISSION = "submission"
    TIME = "time"
    REVIEW = "review"
    RESET = "reset"


SessionListener = Callable[[SessionChange], None]


class QuizSession:
    """Manages navigation, answers, submission and grading of one quiz attempt."""

    def __init__(
        self,
        config: QuizConfig,
        *,
        loaded_result: LoadedQuizResult | None = None,
        initial_answers: Iterable[QuestionAnswer] | None = None,
        on_answer_change: Callable[[str, QuestionAnswer], None] | None = None,
        on_question_submit: Callable[[QuestionSubmission], None] | None = None,
        on_quiz_submit: Callable[[QuizResult], None] | None = None,
        on_progress_change: Callable[[QuizProgress], None] | None = None,
    ) -> None:
        self._config = config
        self._question_ids = set(config.question_ids)
        self._on_answer_change = on_answer_change
        self._on_question_submit = on_question_submit
        self._on_quiz_submit = on_quiz_submit
        self._on_progress_change = on_progress_change
        self._listeners: list[SessionListener] = []
        self._review_mode: bool = False
        self._showing_results: bool = loaded_result is not None

        seed_answers = loaded_result.answers if loaded_result is not None else initial_answers or ()
        answers = {a.question_id: a for a in seed_answers if a.question_id in self._question_ids}

        self._state = QuizState(config=config, max_score=config.max_score, answers=answers)
        if loaded_result is not None:
            self._state.status = SubmissionStatus.GRADED
            self._state.attempt_number = loaded_result.attempt_number
            self._state.score = loaded_result.score
            self._state.is_passed = loaded_result.is_passed
            self._state.total_time_spent = loaded_result.time_spent
            self._state.submitted_at = loaded_result.submitted_at

    # --- Read access ---

    @property
    def config(self) -> QuizConfig:
        return self._config

    @property
    def state(self) -> QuizState:
        """Live state. Callers must treat it as read-only."""
        return self._state

    @property
    def status(self) -> SubmissionStatus:
        return self._state.status

    @property
    def progress(self) -> QuizProgress:
        return compute_progress(self._state)

    @property
    def current_question(self) -> QuestionConfig | None:
        index = self._state.current_question_index
        if 0 <= index < len(self._config.questions):
            return self._config.questions[index]
        return None

    @property
    def is_review_mode(self) -> bool:
        return self._review_mode

    @property
    def showing_results(self) -> bool:
        """True when the session was opened to review a stored result."""
        return self._showing_results

    @property
    def can_go_next(self) -> bool:
        has_next = self._state.current_question_index < len(self._config.questions) - 1
        if not has_next:
            return False
        if self._config.allow_navigation or self._config.allow_skip:
            return True
        current = self.current_question
        answer = self._state.answers.get(current.id) if current is not None else None
        return answer is not None and answer.is_answered

    @property
    def can_go_previous(self) -> bool:
        return self._config.allow_navigation and self._state.current_question_index > 0

    @property
    def can_submit_quiz(self) -> bool:
        if self._state.status.is_terminal:
            return False
        progress = self.progress
        if self._config.require_all_answered:
            return progress.answered_questions == progress.total_questions
        return progress.answered_questions > 0

    @property
    def can_retake(self) -> bool:
        if not self._state.status.is_terminal:
            return False
        max_attempts = self._config.max_attempts
        return max_attempts is None or self._state.attempt_number < max_attempts

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --- Navigation ---

    def go_to_question(self, index: int) -> None:
        """Jump to ``index``. Indices outside the question list are ignored."""
        if not 0 <= index < len(self._config.questions):
            logger.debug("Ignoring navigation to out-of-range index %s", index)
            return
        self._state.current_question_index = index
        self._mark_started()
        self._notify(SessionChange.NAVIGATION)

    def next_question(self) -> None:
        if self.can_go_next:
            self.go_to_question(self._state.current_question_index + 1)

    def previous_question(self) -> None:
        if self.can_go_previous:
            self.go_to_question(self._state.current_question_index - 1)

    # --- Answers ---

    def set_answer(self, question_id: str, answer: QuestionAnswer) -> None:
        """Replace the stored answer for ``question_id``."""
        if self._state.status.is_terminal:
            logger.warning("Quiz '%s' is %s; ignoring answer for '%s'",
                           self._config.id, self._state.status.value, question_id)
            return
        if question_id not in self._question_ids:
            logger.debug("Ignoring answer for unknown question '%s'", question_id)
            return

        self._state.answers[question_id] = answer
        self._mark_started()
        if self._on_answer_change is not None:
            self._on_answer_change(question_id, answer)
        self._notify(SessionChange.ANSWER)

    def answer_question(self, question_id: str, value: object) -> QuestionAnswer:
        """Build an answer for ``value`` in the current attempt and store it."""
        answer = QuestionAnswer.create(
            question_id, value, attempt_number=self._state.attempt_number
        )
        self.set_answer(question_id, answer)
        return answer

    def get_answer(self, question_id: str) -> QuestionAnswer | None:
        return self._state.answers.get(question_id)

    def clear_answer(self, question_id: str) -> None:
        if self._state.status.is_terminal:
            logger.warning("Quiz '%s' is %s; ignoring clear for '%s'",
                           self._config.id, self._state.status.value, question_id)
            return
        if self._state.answers.pop(question_id, None) is not None:
            self._notify(SessionChange.ANSWER)

    def clear_all_answers(self) -> None:
        """Drop every answer together with every submission."""
        if self._state.status.is_terminal:
            logger.warning("Quiz '%s' is %s; ignoring clear of all answers",
                           self._config.id, self._state.status.value)
            return
        self._state.answers.clear()
        self._state.submissions.clear()
        self._notify(SessionChange.ANSWER)

    # --- Submission ---

    def submit_question(self, question_id: str) -> QuestionSubmission | None:
        """Snapshot the current answer of one question. Grading happens at quiz submission."""
        answer = self._state.answers.get(question_id)
        question = self._config.get_question(question_id)
        if answer is None or question is None:
            return None

        submission = QuestionSubmission(
            question_id=question_id,
            answer=answer,
            status=SubmissionStatus.SUBMITTED,
            max_score=question.points,
            submitted_at=utc_now(),
        )
        self._state.submissions[question_id] = submission
        if self._on_question_submit is not None:
            self._on_question_submit(submission)
        self._notify(SessionChange.SUBMISSION)
        return submission

    def submit_quiz(self) -> QuizResult:
        """Grade every question and finish the attempt."""
        now = utc_now()
        pending = [self._pending_submission(question, now) for question in self._config.questions]
        grade = grade_quiz(self._config, {s.question_id: s.answer for s in pending})

        graded: list[QuestionSubmission] = []
        for submission in pending:
            outcome = grade.results[submission.question_id]
            feedback: tuple[Feedback, ...] = ()
            if outcome.feedback:
                feedback_type = FeedbackType.CORRECT if outcome.is_correct else FeedbackType.INCORRECT
                feedback = (Feedback(type=feedback_type, message=outcome.feedback),)
            graded.append(
                replace(
                    submission,
                    status=SubmissionStatus.GRADED,
                    score=outcome.score,
                    feedback=feedback,
                    graded_at=now,
                )
            )

        passing_score = self._config.passing_score
        if passing_score is None:
            passing_score = DEFAULT_PASSING_SCORE
        result = QuizResult(
            quiz_id=self._config.id,
            answers=tuple(self._state.answers.values()),
            submissions=tuple(graded),
            score=grade.total_score,
            max_score=self._state.max_score,
            percentage=grade.percentage,
            is_passed=grade.percentage >= passing_score,
            time_spent=self._state.total_time_spent,
            attempt_number=self._state.attempt_number,
            submitted_at=now,
        )

        self._state.submissions = {s.question_id: s for s in graded}
        self._state.status = SubmissionStatus.GRADED
        self._state.score = result.score
        self._state.is_passed = result.is_passed
        self._state.submitted_at = now
        self._review_mode = False
        logger.info(
            "Quiz '%s' attempt %s graded: %.2f/%.2f (%.1f%%)",
            result.quiz_id, result.attempt_number, result.score, result.max_score, result.percentage,
        )

        if self._on_quiz_submit is not None:
            self._on_quiz_submit(result)
        self._notify(SessionChange.SUBMISSION)
        return result

    def build_partial_result(self) -> QuizResult:
        """Snapshot of an ungraded attempt, used for auto-saving."""
        return QuizResult(
            quiz_id=self._config.id,
            answers=tuple(self._state.answers.values()),
            submissions=tuple(self._state.submissions.values()),
            score=0.0,
            max_score=self._state.max_score,
            percentage=0.0,
            is_passed=False,
            time_spent=self._state.total_time_spent,
            attempt_number=self._state.attempt_number,
            submitted_at=utc_now(),
        )

    def retake(self) -> None:
        """Start the next attempt with a clean answer sheet."""
        if not self.can_retake:
            raise RuntimeError("No further attempts are available for this quiz.")
        attempt_number = self._state.attempt_number + 1
        self._state = QuizState(
            config=self._config,
            max_score=self._config.max_score,
            attempt_number=attempt_number,
        )
        self._review_mode = False
        self._showing_results = False
        self._notify(SessionChange.RESET)

    # --- Review mode ---

    def enter_review_mode(self) -> None:
        if not self._config.allow_review:
            logger.debug("Review is disabled for quiz '%s'", self._config.id)
            return
        self._review_mode = True
        self._notify(SessionChange.REVIEW)

    def exit_review_mode(self) -> None:
        self._review_mode = False
        self._notify(SessionChange.REVIEW)

    def edit_question(self, index: int) -> None:
        """Leave the review summary and return to question ``index``."""
        self.go_to_question(index)
        self.exit_review_mode()

    # --- Time ---

    def update_time_spent(self, seconds: int) -> None:
        if self._state.status is not SubmissionStatus.IN_PROGRESS:
            return
        self._state.total_time_spent = seconds
        self._notify(SessionChange.TIME)

    # --- Internal helpers ---

    def _pending_submission(self, question: QuestionConfig, now: datetime) -> QuestionSubmission:
        existing = self._state.submissions.get(question.id)
        if existing is not None:
            return existing
        answer = self._state.answers.get(question.id) or QuestionAnswer.empty(
            question.id, attempt_number=self._state.attempt_number
        )
        return QuestionSubmission(
            question_id=question.id,
            answer=answer,
            status=SubmissionStatus.SUBMITTED,
            max_score=question.points,
            submitted_at=now,
        )

    def _mark_started(self) -> None:
        if self._state.status is SubmissionStatus.NOT_STARTED:
            self._state.status = SubmissionStatus.IN_PROGRESS
            self._state.started_at = utc_now()

    def _notify(self, change: SessionChange) -> None:
        for listener in list(self._listeners):
            listener(change)
        if self._on_progress_change is not None:
            self._on_progress_change(self.progress)
