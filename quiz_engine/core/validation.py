"""Per-question validation rules and a small rule evaluator.

Questions carry author-defined rules; :func:`build_validation_rules` augments
them with rules implied by the question type (a correctness check for short
answer and true/false questions, length and selection limits, ...).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
import logging
import re
from typing import Any

from quiz_engine.core.grading import normalize_text
from quiz_engine.core.models import (
    EssayQuestion,
    MultipleChoiceQuestion,
    QuestionConfig,
    ShortAnswerQuestion,
    TrueFalseQuestion,
    ValidationRule,
    ValidationRuleType,
    has_answer_value,
)

logger = logging.getLogger(__name__)

INCORRECT_ANSWER_MESSAGE = "Incorrect answer"


@dataclass(slots=True, frozen=True)
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def build_validation_rules(question: QuestionConfig) -> list[ValidationRule]:
    """Return the author's rules plus the rules implied by the question type."""
    rules = list(question.validation_rules)

    if question.required and not any(r.type is ValidationRuleType.REQUIRED for r in rules):
        rules.insert(0, ValidationRule(ValidationRuleType.REQUIRED, "This question is required"))

    if isinstance(question, ShortAnswerQuestion):
        rules.extend(_short_answer_rules(question, rules))
    elif isinstance(question, TrueFalseQuestion):
        if not _has_correctness_rule(rules):
            rules.append(
                ValidationRule(
                    ValidationRuleType.CUSTOM,
                    INCORRECT_ANSWER_MESSAGE,
                    validate=lambda value: value == question.correct_answer,
                )
            )
    elif isinstance(question, EssayQuestion):
        rules.extend(_essay_rules(question))
    elif isinstance(question, MultipleChoiceQuestion) and question.allow_multiple:
        rules.extend(_selection_rules(question))

    return rules


def validate_value(value: Any, rules: Iterable[ValidationRule]) -> ValidationResult:
    """Evaluate ``rules`` against ``value`` and collect the failure messages."""
    errors: list[str] = []
    for rule in rules:
        try:
            passed = _check_rule(rule, value)
        except Exception as exc:  # custom callables are author code
            logger.debug("Validation rule %s raised: %s", rule.type.value, exc)
            errors.append(f"Validation error: {exc}")
            continue
        if not passed:
            errors.append(rule.message)
    return ValidationResult(is_valid=not errors, errors=errors)


def _check_rule(rule: ValidationRule, value: Any) -> bool:
    if rule.type is ValidationRuleType.REQUIRED:
        return has_answer_value(value)
    if rule.type is ValidationRuleType.MIN_LENGTH:
        return not isinstance(value, str) or len(value) >= rule.value
    if rule.type is ValidationRuleType.MAX_LENGTH:
        return not isinstance(value, str) or len(value) <= rule.value
    if rule.type is ValidationRuleType.PATTERN:
        if isinstance(value, str) and rule.value:
            return re.search(rule.value, value) is not None
        return True
    if rule.type is ValidationRuleType.CUSTOM:
        return bool(rule.validate(value)) if rule.validate is not None else True
    return True


def _has_correctness_rule(rules: list[ValidationRule]) -> bool:
    # "incorrect" contains "correct"
    return any(
        rule.type is ValidationRuleType.CUSTOM and "correct" in rule.message.lower()
        for rule in rules
    )


def _short_answer_rules(
    question: ShortAnswerQuestion, existing: list[ValidationRule]
) -> list[ValidationRule]:
    rules: list[ValidationRule] = []
    if question.min_length is not None:
        rules.append(
            ValidationRule(
                ValidationRuleType.MIN_LENGTH,
                f"Answer must be at least {question.min_length} characters",
                value=question.min_length,
            )
        )
    if question.max_length is not None:
        rules.append(
            ValidationRule(
                ValidationRuleType.MAX_LENGTH,
                f"Answer must be at most {question.max_length} characters",
                value=question.max_length,
            )
        )
    if question.pattern:
        rules.append(
            ValidationRule(
                ValidationRuleType.PATTERN,
                "Answer does not match the expected format",
                value=question.pattern,
            )
        )
    if question.correct_answers and not _has_correctness_rule(existing):
        rules.append(
            ValidationRule(
                ValidationRuleType.CUSTOM,
                INCORRECT_ANSWER_MESSAGE,
                validate=lambda value: _matches_accepted_answer(question, value),
            )
        )
    return rules


def _matches_accepted_answer(question: ShortAnswerQuestion, value: Any) -> bool:
    if not value:
        return False
    options = {"trim": question.trim_whitespace, "case_sensitive": question.case_sensitive}
    normalized = normalize_text(str(value), **options)
    return any(normalized == normalize_text(accepted, **options) for accepted in question.correct_answers)


def _essay_rules(question: EssayQuestion) -> list[ValidationRule]:
    def word_count(value: Any) -> int:
        return len(str(value or "").split())

    def char_count(value: Any) -> int:
        return len(str(value or ""))

    rules: list[ValidationRule] = []
    if question.min_words is not None:
        rules.append(
            ValidationRule(
                ValidationRuleType.CUSTOM,
                f"Essay must contain at least {question.min_words} words",
                validate=lambda value: word_count(value) >= question.min_words,
            )
        )
    if question.max_words is not None:
        rules.append(
            ValidationRule(
                ValidationRuleType.CUSTOM,
                f"Essay must contain at most {question.max_words} words",
                validate=lambda value: word_count(value) <= question.max_words,
            )
        )
    if question.min_characters is not None:
        rules.append(
            ValidationRule(
                ValidationRuleType.CUSTOM,
                f"Essay must contain at least {question.min_characters} characters",
                validate=lambda value: char_count(value) >= question.min_characters,
            )
        )
    if question.max_characters is not None:
        rules.append(
            ValidationRule(
                ValidationRuleType.CUSTOM,
                f"Essay must contain at most {question.max_characters} characters",
                validate=lambda value: char_count(value) <= question.max_characters,
            )
        )
    return rules


def _selection_rules(question: MultipleChoiceQuestion) -> list[ValidationRule]:
    def selection_count(value: Any) -> int:
        if isinstance(value, (list, tuple, set)):
            return len(value)
        return 1 if value else 0

    rules: list[ValidationRule] = []
    if question.min_selections is not None:
        rules.append(
            ValidationRule(
                ValidationRuleType.CUSTOM,
                f"Select at least {question.min_selections} options",
                validate=lambda value: selection_count(value) >= question.min_selections,
            )
        )
    if question.max_selections is not None:
        rules.append(
            ValidationRule(
                ValidationRuleType.CUSTOM,
                f"Select at most {question.max_selections} options",
                validate=lambda value: selection_count(value) <= question.max_selections,
            )
        )
    return rules
