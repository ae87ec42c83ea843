"""Progress derivation for a quiz session."""

from __future__ import annotations

from quiz_engine.core.models import QuizProgress, QuizState


def compute_progress(state: QuizState) -> QuizProgress:
    """Derive progress from the current state. Never stored, always recomputed."""
    total = len(state.config.questions)
    answered = sum(1 for answer in state.answers.values() if answer.is_answered)
    time_limit = state.config.time_limit

    return QuizProgress(
        total_questions=total,
        answered_questions=answered,
        current_question_index=state.current_question_index,
        percent_complete=(answered / total) * 100 if total else 0.0,
        time_spent=state.total_time_spent,
        time_remaining=max(0, time_limit - state.total_time_spent) if time_limit else None,
    )
