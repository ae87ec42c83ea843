"""Async facade wiring a quiz session to its timers, auto-save and storage."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
import logging
import time
from typing import TypeVar

from quiz_engine.constants.quiz_constants import TIMER_TICK_SECONDS
from quiz_engine.core.models import (
    LoadedQuizResult,
    QuestionAnswer,
    QuestionConfig,
    QuestionSubmission,
    QuizConfig,
    QuizProgress,
    QuizResult,
    QuizState,
    SubmissionMode,
    SubmissionStatus,
)
from quiz_engine.core.services.auto_saver import AutoSaver
from quiz_engine.core.services.quiz_session import QuizSession, SessionChange, SessionListener
from quiz_engine.core.services.quiz_timer import QuizTimer
from quiz_engine.core.shuffle import shuffle_quiz_questions
from quiz_engine.storage.adapter import StorageError
from quiz_engine.storage.storage_manager import QuizStatistics, QuizStorageManager

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _loop_is_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class QuizManager:
    """Facade for quiz services: QuizSession, QuizTimer, AutoSaver and storage.

    State transitions are delegated to :class:`QuizSession` and stay
    synchronous. Timers and the auto-save task only run while an event loop
    is running; use the manager as an async context manager so they are
    cancelled when the attempt ends.
    """

    def __init__(
        self,
        config: QuizConfig,
        *,
        storage: QuizStorageManager | None = None,
        loaded_result: LoadedQuizResult | None = None,
        initial_answers: Iterable[QuestionAnswer] | None = None,
        submit_on_time_up: bool = False,
        on_answer_change: Callable[[str, QuestionAnswer], None] | None = None,
        on_question_submit: Callable[[QuestionSubmission], None] | None = None,
        on_quiz_submit: Callable[[QuizResult], None] | None = None,
        on_progress_change: Callable[[QuizProgress], None] | None = None,
        on_time_up: Callable[[], None] | None = None,
        tick_interval: float = TIMER_TICK_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._storage = storage
        self._submit_on_time_up = submit_on_time_up
        self._on_time_up = on_time_up
        self._tick_interval = tick_interval
        self._clock = clock
        self._last_error: Exception | None = None
        self._background: set[asyncio.Task] = set()

        # Services
        self._session = QuizSession(
            shuffle_quiz_questions(config),
            loaded_result=loaded_result,
            initial_answers=initial_answers,
            on_answer_change=on_answer_change,
            on_question_submit=on_question_submit,
            on_quiz_submit=on_quiz_submit,
            on_progress_change=on_progress_change,
        )
        self._timer = QuizTimer(
            config.time_limit,
            on_tick=self._session.update_time_spent,
            on_time_up=self._handle_quiz_time_up,
            tick_interval=tick_interval,
            clock=clock,
        )
        self._question_timer: QuizTimer | None = None
        self._timed_question_id: str | None = None
        self._auto_saver = AutoSaver(self._auto_save, config.auto_save_interval)
        self._session.add_listener(self._handle_session_change)

    async def __aenter__(self) -> QuizManager:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # --- Session delegation ---

    @property
    def session(self) -> QuizSession:
        return self._session

    @property
    def config(self) -> QuizConfig:
        return self._session.config

    @property
    def state(self) -> QuizState:
        return self._session.state

    @property
    def status(self) -> SubmissionStatus:
        return self._session.status

    @property
    def progress(self) -> QuizProgress:
        return self._session.progress

    @property
    def current_question(self) -> QuestionConfig | None:
        return self._session.current_question

    @property
    def can_go_next(self) -> bool:
        return self._session.can_go_next

    @property
    def can_go_previous(self) -> bool:
        return self._session.can_go_previous

    @property
    def can_submit_quiz(self) -> bool:
        return self._session.can_submit_quiz

    @property
    def can_retake(self) -> bool:
        return self._session.can_retake

    @property
    def is_review_mode(self) -> bool:
        return self._session.is_review_mode

    @property
    def showing_results(self) -> bool:
        return self._session.showing_results

    @property
    def timer(self) -> QuizTimer:
        return self._timer

    @property
    def question_timer(self) -> QuizTimer | None:
        return self._question_timer

    @property
    def auto_saver(self) -> AutoSaver:
        return self._auto_saver

    @property
    def last_error(self) -> Exception | None:
        """Most recent storage failure, including swallowed auto-save failures."""
        return self._last_error

    def add_listener(self, listener: SessionListener) -> None:
        self._session.add_listener(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        self._session.remove_listener(listener)

    def go_to_question(self, index: int) -> None:
        self._session.go_to_question(index)

    def next_question(self) -> None:
        self._session.next_question()

    def previous_question(self) -> None:
        self._session.previous_question()

    def set_answer(self, question_id: str, answer: QuestionAnswer) -> None:
        self._session.set_answer(question_id, answer)

    def answer_question(self, question_id: str, value: object) -> QuestionAnswer:
        return self._session.answer_question(question_id, value)

    def get_answer(self, question_id: str) -> QuestionAnswer | None:
        return self._session.get_answer(question_id)

    def clear_answer(self, question_id: str) -> None:
        self._session.clear_answer(question_id)

    def clear_all_answers(self) -> None:
        self._session.clear_all_answers()

    def submit_question(self, question_id: str) -> QuestionSubmission | None:
        return self._session.submit_question(question_id)

    def enter_review_mode(self) -> None:
        self._session.enter_review_mode()

    def exit_review_mode(self) -> None:
        self._session.exit_review_mode()

    def edit_question(self, index: int) -> None:
        self._session.edit_question(index)

    def retake(self) -> None:
        self._session.retake()

    async def submit_quiz(self) -> QuizResult:
        """Grade the attempt and hand the result to storage when configured.

        A failed save does not undo the submission: the error is logged and
        kept in :attr:`last_error`, and the graded result is still returned.
        """
        self._auto_saver.cancel()
        result = self._session.submit_quiz()
        if self._storage is not None:
            try:
                await self._storage.save_result(result)
            except StorageError as exc:
                self._last_error = exc
                logger.warning("Quiz '%s' was graded but could not be saved: %s", result.quiz_id, exc)
        return result

    # --- Storage delegation ---

    async def save_result(self, result: QuizResult | None = None) -> LoadedQuizResult | None:
        """Save ``result``, or a partial snapshot of the current attempt."""
        storage = self._require_storage()
        try:
            return await storage.save_result(result or self._session.build_partial_result())
        except StorageError as exc:
            self._last_error = exc
            raise

    async def load_latest_result(self) -> LoadedQuizResult | None:
        return await self._load(lambda storage: storage.load_latest_result(self.config.id))

    async def load_attempt(self, attempt_number: int) -> LoadedQuizResult | None:
        return await self._load(lambda storage: storage.load_attempt(self.config.id, attempt_number))

    async def load_all_attempts(self) -> list[LoadedQuizResult]:
        attempts = await self._load(lambda storage: storage.load_all_attempts(self.config.id))
        return attempts or []

    async def get_quiz_statistics(self) -> QuizStatistics | None:
        return await self._load(lambda storage: storage.get_quiz_statistics(self.config.id))

    async def delete_attempt(self, attempt_number: int) -> None:
        storage = self._require_storage()
        try:
            await storage.delete_attempt(self.config.id, attempt_number)
        except StorageError as exc:
            self._last_error = exc
            raise

    async def delete_all_attempts(self) -> None:
        storage = self._require_storage()
        try:
            await storage.delete_all_attempts(self.config.id)
        except StorageError as exc:
            self._last_error = exc
            raise

    # --- Lifecycle ---

    def close(self) -> None:
        """Cancel timers and any pending auto-save."""
        self._timer.pause()
        if self._question_timer is not None:
            self._question_timer.pause()
        self._auto_saver.cancel()
        for task in list(self._background):
            task.cancel()

    async def aclose(self) -> None:
        self.close()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # --- Internal helpers ---

    def _require_storage(self) -> QuizStorageManager:
        if self._storage is None:
            raise RuntimeError("No storage is configured for this quiz.")
        return self._storage

    async def _load(self, operation: Callable[[QuizStorageManager], Awaitable[T]]) -> T | None:
        storage = self._require_storage()
        try:
            return await operation(storage)
        except StorageError as exc:
            self._last_error = exc
            return None

    async def _auto_save(self) -> None:
        if self._storage is None:
            return
        try:
            await self._storage.save_result(self._session.build_partial_result())
        except Exception as exc:
            self._last_error = exc
            raise

    def _handle_session_change(self, change: SessionChange) -> None:
        if change is SessionChange.RESET:
            self._timer.reset()
            self._timed_question_id = None
        self._sync_timers()
        self._sync_auto_save(change)

    def _sync_timers(self) -> None:
        in_progress = self._session.status is SubmissionStatus.IN_PROGRESS
        question = self._session.current_question
        question_id = question.id if question is not None else None
        if question_id != self._timed_question_id:
            if self._question_timer is not None:
                self._question_timer.pause()
            self._question_timer = self._build_question_timer(question)
            self._timed_question_id = question_id

        if in_progress and _loop_is_running():
            self._timer.start()
            if self._question_timer is not None:
                self._question_timer.start()
        else:
            self._timer.pause()
            if self._question_timer is not None:
                self._question_timer.pause()

    def _sync_auto_save(self, change: SessionChange) -> None:
        if self._session.status is not SubmissionStatus.IN_PROGRESS or not self._session.state.answers:
            self._auto_saver.cancel()
            return
        if change is SessionChange.TIME or self._storage is None or not _loop_is_running():
            return
        self._auto_saver.schedule()

    def _build_question_timer(self, question: QuestionConfig | None) -> QuizTimer | None:
        if question is None or question.time_limit is None:
            return None
        question_id = question.id
        return QuizTimer(
            question.time_limit,
            on_time_up=lambda: self._handle_question_time_up(question_id),
            tick_interval=self._tick_interval,
            clock=self._clock,
        )

    def _handle_question_time_up(self, question_id: str) -> None:
        if self.config.submission_mode is SubmissionMode.QUIZ_LEVEL:
            return
        answer = self._session.get_answer(question_id)
        if answer is not None and answer.is_answered:
            logger.warning("Time is up for question '%s'; submitting it", question_id)
            self._session.submit_question(question_id)

    def _handle_quiz_time_up(self) -> None:
        if self._on_time_up is not None:
            self._on_time_up()
        if not self._submit_on_time_up or self._session.status.is_terminal:
            return
        logger.warning("Time is up for quiz '%s'; submitting it", self.config.id)
        task = asyncio.get_running_loop().create_task(self.submit_quiz())
        self._background.add(task)
        task.add_done_callback(self._background.discard)
