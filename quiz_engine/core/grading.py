"""Automatic grading of quiz answers.

Every question type is graded by a pure function returning a
:class:`GradingResult`. Objective types are scored with partial credit where
the type allows it:

* multiple choice (single select): all or nothing
* multiple choice (multi select): ``max(0, correct/C - incorrect/C)`` where
  ``C`` is the number of correct options, so selecting every option does not
  earn partial credit
* true/false: all or nothing
* short answer: match against any accepted answer after optional trimming and
  lower-casing
* fill in the blank and matching: fraction of blanks/pairs answered correctly

Essays and short answers without accepted answers are never scored
automatically; they come back with zero points and a manual grading note.
"""

from __future__ import annotations

from collections.abc import Mapping

from quiz_engine.constants.quiz_constants import MANUAL_GRADING_FEEDBACK, NO_ANSWER_FEEDBACK
from quiz_engine.core.models import (
    EssayQuestion,
    FillInBlankQuestion,
    GradingResult,
    MatchingQuestion,
    MultipleChoiceQuestion,
    QuestionAnswer,
    QuestionConfig,
    QuestionConfigError,
    QuizConfig,
    QuizGrade,
    ShortAnswerQuestion,
    TrueFalseQuestion,
    compute_percentage,
    has_answer_value,
)


def grade_question(config: QuestionConfig, answer: QuestionAnswer | None) -> GradingResult:
    """Grade a single answer against its question definition."""
    if answer is None or not answer.is_answered or not has_answer_value(answer.value):
        return no_answer_result(config)

    if isinstance(config, MultipleChoiceQuestion):
        return _grade_multiple_choice(config, answer)
    if isinstance(config, TrueFalseQuestion):
        return _grade_true_false(config, answer)
    if isinstance(config, ShortAnswerQuestion):
        return _grade_short_answer(config, answer)
    if isinstance(config, EssayQuestion):
        return _manual_grading_result(config)
    if isinstance(config, FillInBlankQuestion):
        return _grade_fill_in_blank(config, answer)
    if isinstance(config, MatchingQuestion):
        return _grade_matching(config, answer)

    raise QuestionConfigError(f"Cannot grade question of type {type(config).__name__}.")


def grade_quiz(config: QuizConfig, answers: Mapping[str, QuestionAnswer]) -> QuizGrade:
    """Grade every configured question, answered or not."""
    results: dict[str, GradingResult] = {}
    total_score = 0.0
    max_score = 0.0

    for question in config.questions:
        result = grade_question(question, answers.get(question.id))
        results[question.id] = result
        total_score += result.score
        max_score += result.max_score

    return QuizGrade(
        total_score=total_score,
        max_score=max_score,
        percentage=compute_percentage(total_score, max_score),
        results=results,
    )


def no_answer_result(config: QuestionConfig) -> GradingResult:
    return GradingResult(
        is_correct=False,
        is_partially_correct=False,
        score=0.0,
        max_score=config.points,
        feedback=NO_ANSWER_FEEDBACK,
    )


def normalize_text(text: str, *, trim: bool, case_sensitive: bool) -> str:
    if trim:
        text = text.strip()
    if not case_sensitive:
        text = text.lower()
    return text


def _manual_grading_result(config: QuestionConfig) -> GradingResult:
    return GradingResult(
        is_correct=False,
        is_partially_correct=False,
        score=0.0,
        max_score=config.points,
        feedback=MANUAL_GRADING_FEEDBACK,
    )


def _all_or_nothing(config: QuestionConfig, is_correct: bool) -> GradingResult:
    return GradingResult(
        is_correct=is_correct,
        is_partially_correct=False,
        score=config.points if is_correct else 0.0,
        max_score=config.points,
    )


def _fractional(config: QuestionConfig, correct: int, total: int) -> GradingResult:
    is_fully_correct = correct == total
    fraction = correct / total if total > 0 else 0.0
    return GradingResult(
        is_correct=is_fully_correct,
        is_partially_correct=correct > 0 and not is_fully_correct,
        score=fraction * config.points,
        max_score=config.points,
    )


def _grade_multiple_choice(config: MultipleChoiceQuestion, answer: QuestionAnswer) -> GradingResult:
    correct_ids = set(config.correct_option_ids)
    value = answer.value
    selected = list(dict.fromkeys(value)) if isinstance(value, (list, tuple, set)) else [value]

    if not config.allow_multiple:
        return _all_or_nothing(config, len(selected) == 1 and selected[0] in correct_ids)

    correct_count = sum(1 for option_id in selected if option_id in correct_ids)
    incorrect_count = len(selected) - correct_count
    total_correct = len(correct_ids)

    is_fully_correct = correct_count == total_correct and incorrect_count == 0
    # Each wrong pick cancels one right pick.
    fraction = max(0.0, correct_count / total_correct - incorrect_count / total_correct)
    return GradingResult(
        is_correct=is_fully_correct,
        is_partially_correct=correct_count > 0 and not is_fully_correct,
        score=fraction * config.points,
        max_score=config.points,
    )


def _grade_true_false(config: TrueFalseQuestion, answer: QuestionAnswer) -> GradingResult:
    return _all_or_nothing(
        config, isinstance(answer.value, bool) and answer.value == config.correct_answer
    )


def _grade_short_answer(config: ShortAnswerQuestion, answer: QuestionAnswer) -> GradingResult:
    if not config.correct_answers:
        return _manual_grading_result(config)

    user_answer = normalize_text(
        str(answer.value), trim=config.trim_whitespace, case_sensitive=config.case_sensitive
    )
    is_correct = any(
        user_answer
        == normalize_text(accepted, trim=config.trim_whitespace, case_sensitive=config.case_sensitive)
        for accepted in config.correct_answers
    )
    return _all_or_nothing(config, is_correct)


def _grade_fill_in_blank(config: FillInBlankQuestion, answer: QuestionAnswer) -> GradingResult:
    if not isinstance(answer.value, Mapping):
        raise QuestionConfigError(
            f"Fill-in-blank answer for '{config.id}' must map blank ids to text."
        )

    blanks = config.blanks
    correct_count = 0
    for blank in blanks:
        user_answer = answer.value.get(blank.id)
        if not user_answer:
            continue
        processed = normalize_text(str(user_answer), trim=True, case_sensitive=blank.case_sensitive)
        if any(
            processed == normalize_text(accepted, trim=True, case_sensitive=blank.case_sensitive)
            for accepted in blank.correct_answers
        ):
            correct_count += 1

    return _fractional(config, correct_count, len(blanks))


def _grade_matching(config: MatchingQuestion, answer: QuestionAnswer) -> GradingResult:
    if not isinstance(answer.value, Mapping):
        raise QuestionConfigError(
            f"Matching answer for '{config.id}' must map left ids to right values."
        )

    correct_count = sum(1 for pair in config.pairs if answer.value.get(pair.id) == pair.right)
    return _fractional(config, correct_count, len(config.pairs))
