"""Tests for model construction and configuration errors."""

from __future__ import annotations

import pytest

from conftest import make_choice_question, make_quiz, make_result
from quiz_engine.core.models import (
    FillInBlankQuestion,
    FillInBlankSegment,
    LoadedQuizResult,
    MatchingPair,
    MatchingQuestion,
    MultipleChoiceOption,
    MultipleChoiceQuestion,
    QuestionAnswer,
    QuestionConfigError,
    SubmissionStatus,
    TrueFalseQuestion,
)


class TestQuestionConfig:
    def test_negative_points(self):
        with pytest.raises(QuestionConfigError):
            TrueFalseQuestion(id="tf", prompt="?", points=-1, correct_answer=True)

    def test_multiple_choice_needs_a_correct_option(self):
        with pytest.raises(QuestionConfigError):
            MultipleChoiceQuestion(
                id="mc", prompt="?", points=1, options=(MultipleChoiceOption("a", "A"),)
            )

    def test_multiple_choice_needs_options(self):
        with pytest.raises(QuestionConfigError):
            MultipleChoiceQuestion(id="mc", prompt="?", points=1, options=())

    def test_duplicate_option_ids(self):
        with pytest.raises(QuestionConfigError):
            MultipleChoiceQuestion(
                id="mc",
                prompt="?",
                points=1,
                options=(
                    MultipleChoiceOption("a", "A", is_correct=True),
                    MultipleChoiceOption("a", "Again"),
                ),
            )

    def test_blank_without_id(self):
        with pytest.raises(QuestionConfigError):
            FillInBlankQuestion(
                id="fib", prompt="?", points=1, segments=(FillInBlankSegment("blank"),)
            )

    def test_duplicate_pair_ids(self):
        with pytest.raises(QuestionConfigError):
            MatchingQuestion(
                id="m",
                prompt="?",
                points=1,
                pairs=(MatchingPair("p", "a", "b"), MatchingPair("p", "c", "d")),
            )

    def test_duplicate_question_ids(self):
        with pytest.raises(QuestionConfigError):
            make_quiz(questions=(make_choice_question("q1"), make_choice_question("q1")))

    def test_passing_score_out_of_range(self):
        with pytest.raises(QuestionConfigError):
            make_quiz(passing_score=120)

    def test_max_score_sums_points(self):
        assert make_quiz().max_score == 15


class TestQuestionAnswer:
    @pytest.mark.parametrize("value", [None, "", [], {}])
    def test_empty_values_are_not_answers(self, value):
        assert not QuestionAnswer.create("q1", value).is_answered

    @pytest.mark.parametrize("value", ["B", False, 0, ["a"], {"b1": "x"}])
    def test_values_that_count(self, value):
        answer = QuestionAnswer.create("q1", value, attempt_number=2)
        assert answer.is_answered
        assert answer.attempt_number == 2
        assert answer.timestamp is not None


def test_status_terminal():
    assert SubmissionStatus.GRADED.is_terminal
    assert SubmissionStatus.SUBMITTED.is_terminal
    assert not SubmissionStatus.IN_PROGRESS.is_terminal


def test_loaded_result_derives_graded_answers():
    loaded = LoadedQuizResult.from_result(make_result(score=10.0), user_id="alice")
    graded = loaded.graded_answers["q1"]
    assert graded.is_correct
    assert graded.score == 10.0
    assert loaded.user_id == "alice"

    partial = LoadedQuizResult.from_result(make_result(score=4.0))
    assert not partial.graded_answers["q1"].is_correct
