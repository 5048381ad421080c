"""Progress tracking: rolling totals, averages and bests per user and layout."""

import logging

from typing_coach.models.progress import UserProgress
from typing_coach.models.session import TypingSession
from typing_coach.services.metrics_calculator import round_half_up

logger = logging.getLogger(__name__)


def new_progress(user_id: str, layout_id: str) -> UserProgress:
    """Progress for a user who has not finished any session yet."""
    return UserProgress(user_id=user_id, layout_id=layout_id)


def update_progress(progress: UserProgress, session: TypingSession) -> UserProgress:
    """Fold one finished session into ``progress`` and return the new value.

    Averages are session-weighted means of the exact running totals, rounded half-up.
    Sessions on another layout or of another user leave the progress unchanged.
    """
    if session.user_id != progress.user_id or session.layout_id != progress.layout_id:
        logger.debug(
            "Session %s does not belong to progress of %s/%s",
            session.id,
            progress.user_id,
            progress.layout_id,
        )
        return progress

    count = progress.total_sessions + 1
    total_wpm = progress.total_wpm + session.wpm
    total_accuracy = progress.total_accuracy + session.accuracy
    last = progress.last_session_at
    return progress.model_copy(
        update={
            "total_sessions": count,
            "total_practice_seconds": progress.total_practice_seconds + session.duration_seconds,
            "total_wpm": total_wpm,
            "total_accuracy": total_accuracy,
            "average_wpm": round_half_up(total_wpm / count),
            "average_accuracy": round_half_up(total_accuracy / count),
            "best_wpm": max(progress.best_wpm, session.wpm),
            "best_accuracy": max(progress.best_accuracy, session.accuracy),
            "last_session_at": session.end_time if last is None else max(last, session.end_time),
        }
    )
