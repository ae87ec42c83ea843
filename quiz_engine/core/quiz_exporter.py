"""Utilities for exporting quizzes to the JSON format used for imports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from quiz_engine.core.models import (
    EssayQuestion,
    FillInBlankQuestion,
    MatchingQuestion,
    MultipleChoiceQuestion,
    QuestionConfig,
    QuizConfig,
    ShortAnswerQuestion,
    TrueFalseQuestion,
    ValidationRuleType,
)

_RULE_NAMES = {
    ValidationRuleType.REQUIRED: "required",
    ValidationRuleType.MIN_LENGTH: "minLength",
    ValidationRuleType.MAX_LENGTH: "maxLength",
    ValidationRuleType.PATTERN: "pattern",
}


def save_quiz_to_file(file_path: Path, config: QuizConfig) -> None:
    """Persist the quiz definition to disk in the JSON import format."""

    if not config.questions:
        raise ValueError("Cannot export an empty quiz.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    document = json.dumps(quiz_config_to_dict(config), indent=2, ensure_ascii=False)
    file_path.write_text(document + "\n", encoding="utf-8")


def quiz_config_to_dict(config: QuizConfig) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": config.id,
        "title": config.title,
        "submissionMode": config.submission_mode.value,
        "allowNavigation": config.allow_navigation,
        "allowSkip": config.allow_skip,
        "shuffleQuestions": config.shuffle_questions,
        "requireAllAnswered": config.require_all_answered,
        "allowReview": config.allow_review,
        "showScore": config.show_score,
        "showCorrectAnswers": config.show_correct_answers,
        "showTimer": config.show_timer,
        "showFeedbackOnSubmit": config.show_feedback_on_submit,
        "autoSaveInterval": config.auto_save_interval,
        "questions": [_serialize_question(question) for question in config.questions],
    }
    optional = {
        "description": config.description,
        "instructions": config.instructions,
        "timeLimit": config.time_limit,
        "passingScore": config.passing_score,
        "maxAttempts": config.max_attempts,
    }
    data.update({key: value for key, value in optional.items() if value is not None})
    return data


def _serialize_question(question: QuestionConfig) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": question.id,
        "type": question.type.value,
        "question": question.prompt,
        "points": question.points,
    }
    optional = {
        "title": question.title,
        "instructions": question.instructions,
        "difficulty": question.difficulty,
        "category": question.category,
        "timeLimit": question.time_limit,
        "maxAttempts": question.max_attempts,
    }
    data.update({key: value for key, value in optional.items() if value is not None})
    if question.required:
        data["required"] = True
    if question.tags:
        data["tags"] = list(question.tags)
    if question.feedback is not None or question.hints:
        feedback: dict[str, Any] = {"hints": list(question.hints)}
        if question.feedback is not None:
            for key in ("correct", "incorrect", "partial"):
                message = getattr(question.feedback, key)
                if message is not None:
                    feedback[key] = {"type": key, "message": message}
        data["feedback"] = feedback
    rules = [
        {"type": _RULE_NAMES[rule.type], "message": rule.message, "value": rule.value}
        for rule in question.validation_rules
        if rule.type in _RULE_NAMES
    ]
    if rules:
        data["validation"] = {"rules": rules}

    data.update(_serialize_variant(question))
    return data


def _serialize_variant(question: QuestionConfig) -> dict[str, Any]:
    if isinstance(question, MultipleChoiceQuestion):
        return {
            "options": [
                {"id": o.id, "text": o.text, "isCorrect": o.is_correct, "feedback": o.feedback}
                for o in question.options
            ],
            "allowMultiple": question.allow_multiple,
            "shuffleOptions": question.shuffle_options,
            "minSelections": question.min_selections,
            "maxSelections": question.max_selections,
        }
    if isinstance(question, TrueFalseQuestion):
        return {"correctAnswer": question.correct_answer}
    if isinstance(question, ShortAnswerQuestion):
        return {
            "correctAnswers": list(question.correct_answers),
            "caseSensitive": question.case_sensitive,
            "trimWhitespace": question.trim_whitespace,
            "maxLength": question.max_length,
            "minLength": question.min_length,
            "pattern": question.pattern,
            "placeholder": question.placeholder,
        }
    if isinstance(question, EssayQuestion):
        return {
            "minWords": question.min_words,
            "maxWords": question.max_words,
            "minCharacters": question.min_characters,
            "maxCharacters": question.max_characters,
            "placeholder": question.placeholder,
        }
    if isinstance(question, FillInBlankQuestion):
        return {
            "segments": [
                {
                    "type": s.type,
                    "content": s.content,
                    "id": s.id,
                    "correctAnswers": list(s.correct_answers),
                    "caseSensitive": s.case_sensitive,
                    "placeholder": s.placeholder,
                }
                for s in question.segments
            ]
        }
    if isinstance(question, MatchingQuestion):
        return {
            "pairs": [{"id": p.id, "left": p.left, "right": p.right} for p in question.pairs],
            "randomizeLeft": question.randomize_left,
            "randomizeRight": question.randomize_right,
        }
    raise ValueError(f"Cannot export question of type {type(question).__name__}.")
