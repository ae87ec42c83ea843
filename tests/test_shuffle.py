"""Tests for deterministic shuffling."""

from __future__ import annotations

from collections import Counter

from conftest import make_quiz
from quiz_engine.core.models import (
    MatchingPair,
    MatchingQuestion,
    MultipleChoiceOption,
    MultipleChoiceQuestion,
    TrueFalseQuestion,
)
from quiz_engine.core.shuffle import (
    SeededRandom,
    display_options,
    matching_display_order,
    seed_from_id,
    shuffle,
    shuffle_quiz_questions,
)


class TestSeededRandom:
    def test_first_draw(self):
        assert SeededRandom(1).random() == 58598 / 233280

    def test_draws_stay_in_unit_interval(self):
        rng = SeededRandom(12345)
        for _ in range(1000):
            assert 0 <= rng.random() < 1


class TestShuffle:
    def test_same_seed_same_order(self):
        items = list(range(20))
        assert shuffle(items, seed=42) == shuffle(items, seed=42)

    def test_different_seeds_different_order(self):
        items = list(range(20))
        assert shuffle(items, seed=1) != shuffle(items, seed=2)

    def test_preserves_items(self):
        items = ["a", "b", "b", "c", "d", "e"]
        assert Counter(shuffle(items, seed=7)) == Counter(items)

    def test_does_not_mutate_input(self):
        items = [1, 2, 3, 4]
        shuffle(items, seed=3)
        assert items == [1, 2, 3, 4]

    def test_two_items_with_seed_one_are_swapped(self):
        # first draw 0.2512 -> j = 0
        assert shuffle(["x", "y"], seed=1) == ["y", "x"]

    def test_unseeded_shuffle_keeps_items(self):
        items = list(range(10))
        assert sorted(shuffle(items)) == items

    def test_empty_and_single(self):
        assert shuffle([], seed=1) == []
        assert shuffle(["only"], seed=1) == ["only"]


def test_seed_from_id_sums_character_codes():
    assert seed_from_id("ab") == 97 + 98
    assert seed_from_id("") == 0


class TestQuizHelpers:
    def test_questions_untouched_without_flag(self):
        quiz = make_quiz()
        assert shuffle_quiz_questions(quiz) is quiz

    def test_question_shuffle_is_reproducible(self):
        questions = tuple(
            TrueFalseQuestion(id=f"q{i}", prompt="?", points=1, correct_answer=True) for i in range(8)
        )
        quiz = make_quiz(questions=questions, shuffle_questions=True)
        first = shuffle_quiz_questions(quiz)
        second = shuffle_quiz_questions(quiz)
        assert first.question_ids == second.question_ids
        assert sorted(first.question_ids) == sorted(quiz.question_ids)
        assert first.question_ids == [q.id for q in shuffle(questions, seed_from_id("quiz-1"))]

    def test_display_options(self):
        options = tuple(MultipleChoiceOption(str(i), f"Option {i}", is_correct=i == 0) for i in range(5))
        fixed = MultipleChoiceQuestion(id="mc", prompt="?", points=1, options=options)
        assert display_options(fixed) == list(options)

        shuffled = MultipleChoiceQuestion(
            id="mc", prompt="?", points=1, options=options, shuffle_options=True
        )
        assert display_options(shuffled) == shuffle(options, seed_from_id("mc"))

    def test_matching_columns_use_different_seeds(self):
        pairs = tuple(MatchingPair(f"p{i}", f"L{i}", f"R{i}") for i in range(6))
        question = MatchingQuestion(
            id="match", prompt="?", points=1, pairs=pairs, randomize_left=True, randomize_right=True
        )
        left, right = matching_display_order(question)
        seed = seed_from_id("match")
        assert left == shuffle(pairs, seed)
        assert right == shuffle([p.right for p in pairs], seed + 1000)
        assert [p.right for p in left] != right

    def test_matching_without_randomization(self):
        pairs = (MatchingPair("p1", "L1", "R1"), MatchingPair("p2", "L2", "R2"))
        question = MatchingQuestion(id="match", prompt="?", points=1, pairs=pairs)
        assert matching_display_order(question) == (list(pairs), ["R1", "R2"])
