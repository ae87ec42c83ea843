"""Deterministic shuffling of questions, options and matching columns."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import replace
import math
import random
from typing import TypeVar

from quiz_engine.constants.quiz_constants import (
    LCG_INCREMENT,
    LCG_MODULUS,
    LCG_MULTIPLIER,
    RIGHT_SIDE_SEED_OFFSET,
)
from quiz_engine.core.models import (
    MatchingPair,
    MatchingQuestion,
    MultipleChoiceOption,
    MultipleChoiceQuestion,
    QuizConfig,
)

T = TypeVar("T")


class SeededRandom:
    """Linear congruential generator producing uniform draws in ``[0, 1)``.

    The recurrence is kept stable so stored attempts keep rendering in the
    same order.
    """

    def __init__(self, seed: int) -> None:
        self._state = seed

    def random(self) -> float:
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self._state / LCG_MODULUS


def seed_from_id(identifier: str) -> int:
    """Derive a shuffle seed from the sum of the identifier's character codes."""
    return sum(ord(char) for char in identifier)


def shuffle(items: Sequence[T], seed: int | None = None) -> list[T]:
    """Return a Fisher-Yates shuffled copy of ``items``.

    With a seed the permutation is fully reproducible; without one the
    platform random source is used.
    """
    draw: Callable[[], float] = SeededRandom(seed).random if seed is not None else random.random
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = math.floor(draw() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def shuffle_quiz_questions(config: QuizConfig) -> QuizConfig:
    """Apply the quiz-level question shuffle, seeded by the quiz id."""
    if not config.shuffle_questions:
        return config
    questions = shuffle(config.questions, seed_from_id(config.id))
    return replace(config, questions=tuple(questions))


def display_options(question: MultipleChoiceQuestion) -> list[MultipleChoiceOption]:
    if not question.shuffle_options:
        return list(question.options)
    return shuffle(question.options, seed_from_id(question.id))


def matching_display_order(question: MatchingQuestion) -> tuple[list[MatchingPair], list[str]]:
    """Return the left-column pairs and right-column values in display order."""
    base_seed = seed_from_id(question.id)
    left = list(question.pairs)
    right = [pair.right for pair in question.pairs]
    if question.randomize_left:
        left = shuffle(left, base_seed)
    if question.randomize_right:
        right = shuffle(right, base_seed + RIGHT_SIDE_SEED_OFFSET)
    return left, right
