"""Utilities for importing quiz definitions from JSON.

File format: a single JSON object using the camelCase keys of the quiz
definition, with one object per question tagged by ``type``:

    {
      "id": "geography-1",
      "title": "Capitals",
      "submissionMode": "quiz-level",
      "allowNavigation": true,
      "passingScore": 60,
      "questions": [
        {
          "id": "q1",
          "type": "multiple-choice",
          "question": "Capital of France?",
          "points": 10,
          "options": [
            {"id": "a", "text": "Paris", "isCorrect": true},
            {"id": "b", "text": "Lyon"}
          ]
        },
        {"id": "q2", "type": "true-false", "question": "...", "points": 5, "correctAnswer": true}
      ]
    }

``randomizeQuestions`` is accepted as an alias of ``shuffleQuestions``.
"""

from __future__ import annotations

from collections.abc import Mapping
import json
from pathlib import Path
from typing import Any

from quiz_engine.core.models import (
    EssayQuestion,
    FillInBlankQuestion,
    FillInBlankSegment,
    MatchingPair,
    MatchingQuestion,
    MultipleChoiceOption,
    MultipleChoiceQuestion,
    QuestionConfig,
    QuestionConfigError,
    QuestionFeedback,
    QuestionType,
    QuizConfig,
    ShortAnswerQuestion,
    SubmissionMode,
    TrueFalseQuestion,
    ValidationRule,
    ValidationRuleType,
)


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


_RULE_TYPES = {
    "required": ValidationRuleType.REQUIRED,
    "minLength": ValidationRuleType.MIN_LENGTH,
    "maxLength": ValidationRuleType.MAX_LENGTH,
    "pattern": ValidationRuleType.PATTERN,
}


def load_quiz_from_file(file_path: Path) -> QuizConfig:
    text = file_path.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise QuizImportError(f"Quiz file is not valid JSON: {exc}") from exc
    return quiz_config_from_dict(data)


def quiz_config_from_dict(data: Mapping[str, Any]) -> QuizConfig:
    if not isinstance(data, Mapping):
        raise QuizImportError("Quiz definition must be a JSON object.")
    if not isinstance(data.get("id"), str) or not isinstance(data.get("title"), str):
        raise QuizImportError("Quiz definition requires string 'id' and 'title'.")
    raw_questions = data.get("questions")
    if not isinstance(raw_questions, list) or not raw_questions:
        raise QuizImportError("Quiz definition did not contain any questions.")

    try:
        return QuizConfig(
            id=data["id"],
            title=data["title"],
            questions=tuple(_parse_question(item) for item in raw_questions),
            submission_mode=SubmissionMode(data.get("submissionMode", SubmissionMode.QUIZ_LEVEL.value)),
            allow_navigation=bool(data.get("allowNavigation", False)),
            allow_skip=bool(data.get("allowSkip", False)),
            shuffle_questions=bool(data.get("shuffleQuestions", data.get("randomizeQuestions", False))),
            time_limit=data.get("timeLimit"),
            require_all_answered=bool(data.get("requireAllAnswered", False)),
            allow_review=bool(data.get("allowReview", True)),
            passing_score=data.get("passingScore"),
            show_score=bool(data.get("showScore", True)),
            show_correct_answers=bool(data.get("showCorrectAnswers", False)),
            description=data.get("description"),
            instructions=data.get("instructions"),
            max_attempts=data.get("maxAttempts"),
            show_timer=bool(data.get("showTimer", True)),
            show_feedback_on_submit=bool(data.get("showFeedbackOnSubmit", False)),
            auto_save_interval=float(data.get("autoSaveInterval", 0)),
        )
    except QuestionConfigError as exc:
        raise QuizImportError(str(exc)) from exc
    except (KeyError, TypeError, ValueError) as exc:
        raise QuizImportError(f"Invalid quiz definition: {exc}") from exc


def _parse_question(item: Mapping[str, Any]) -> QuestionConfig:
    try:
        question_type = QuestionType(item.get("type"))
    except ValueError as exc:
        raise QuestionConfigError(f"Unknown question type '{item.get('type')}'.") from exc

    common: dict[str, Any] = {
        "id": item["id"],
        "prompt": item.get("question", ""),
        "points": item["points"],
        "title": item.get("title"),
        "instructions": item.get("instructions"),
        "required": bool(item.get("required", False)),
        "difficulty": item.get("difficulty"),
        "tags": tuple(item.get("tags") or ()),
        "category": item.get("category"),
        "time_limit": item.get("timeLimit"),
        "max_attempts": item.get("maxAttempts"),
        "validation_rules": _parse_rules(item.get("validation")),
    }
    feedback = item.get("feedback")
    if isinstance(feedback, Mapping):
        common["hints"] = tuple(feedback.get("hints") or ())
        common["feedback"] = QuestionFeedback(
            correct=_feedback_message(feedback.get("correct")),
            incorrect=_feedback_message(feedback.get("incorrect")),
            partial=_feedback_message(feedback.get("partial")),
        )

    if question_type is QuestionType.MULTIPLE_CHOICE:
        return MultipleChoiceQuestion(
            **common,
            options=tuple(
                MultipleChoiceOption(
                    id=option["id"],
                    text=option.get("text", ""),
                    is_correct=bool(option.get("isCorrect", False)),
                    feedback=option.get("feedback"),
                )
                for option in item.get("options") or []
            ),
            allow_multiple=bool(item.get("allowMultiple", False)),
            shuffle_options=bool(item.get("shuffleOptions", False)),
            min_selections=item.get("minSelections"),
            max_selections=item.get("maxSelections"),
        )
    if question_type is QuestionType.TRUE_FALSE:
        return TrueFalseQuestion(**common, correct_answer=bool(item["correctAnswer"]))
    if question_type is QuestionType.SHORT_ANSWER:
        return ShortAnswerQuestion(
            **common,
            correct_answers=tuple(item.get("correctAnswers") or ()),
            case_sensitive=bool(item.get("caseSensitive", False)),
            trim_whitespace=bool(item.get("trimWhitespace", False)),
            max_length=item.get("maxLength"),
            min_length=item.get("minLength"),
            pattern=item.get("pattern"),
            placeholder=item.get("placeholder"),
        )
    if question_type is QuestionType.ESSAY:
        return EssayQuestion(
            **common,
            min_words=item.get("minWords"),
            max_words=item.get("maxWords"),
            min_characters=item.get("minCharacters"),
            max_characters=item.get("maxCharacters"),
            placeholder=item.get("placeholder"),
        )
    if question_type is QuestionType.FILL_IN_BLANK:
        return FillInBlankQuestion(
            **common,
            segments=tuple(
                FillInBlankSegment(
                    type=segment.get("type", "text"),
                    content=segment.get("content"),
                    id=segment.get("id"),
                    correct_answers=tuple(segment.get("correctAnswers") or ()),
                    case_sensitive=bool(segment.get("caseSensitive", False)),
                    placeholder=segment.get("placeholder"),
                )
                for segment in item.get("segments") or []
            ),
        )
    return MatchingQuestion(
        **common,
        pairs=tuple(
            MatchingPair(id=pair["id"], left=pair["left"], right=pair["right"])
            for pair in item.get("pairs") or []
        ),
        randomize_left=bool(item.get("randomizeLeft", False)),
        randomize_right=bool(item.get("randomizeRight", False)),
    )


def _parse_rules(validation: Any) -> tuple[ValidationRule, ...]:
    if not isinstance(validation, Mapping):
        return ()
    rules: list[ValidationRule] = []
    for raw in validation.get("rules") or []:
        rule_type = _RULE_TYPES.get(raw.get("type"))
        if rule_type is None:
            raise QuizImportError(
                f"Validation rule type '{raw.get('type')}' cannot be loaded from a file."
            )
        rules.append(ValidationRule(rule_type, raw.get("message", ""), value=raw.get("value")))
    return tuple(rules)


def _feedback_message(value: Any) -> str | None:
    if isinstance(value, Mapping):
        return value.get("message")
    return value
