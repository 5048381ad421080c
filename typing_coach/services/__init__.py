"""Service initialization module.

Factory helpers to create and wire the engine services with their collaborators.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

if TYPE_CHECKING:  # Avoid import cycles at runtime
    from typing_coach.config import EngineSettings
    from typing_coach.models.session import TypingSession
    from typing_coach.services.session_aggregator import SessionAggregator
    from typing_coach.services.training_service import TrainingService


def init_services(
    user_id: str,
    load_sessions: Callable[[str, int], List["TypingSession"]],
    on_session_finalized: Optional[Callable[["TypingSession"], None]] = None,
    settings: Optional["EngineSettings"] = None,
) -> Tuple["SessionAggregator", "TrainingService"]:
    """Initialize and return an aggregator and a training service sharing one debug helper.

    The bundled keyboard layouts serve as the ``key_to_finger`` collaborator.

    Example:
        aggregator, training = init_services("user-1", repository.load_sessions).
    """
    # Lazy imports to avoid circular dependencies
    from typing_coach.config import EngineSettings
    from typing_coach.helpers.debug_util import DebugUtil
    from typing_coach.models.keyboard_layout import builtin_key_to_finger
    from typing_coach.services.session_aggregator import SessionAggregator
    from typing_coach.services.training_service import TrainingService

    debug_util = DebugUtil()
    aggregator = SessionAggregator(
        user_id, on_session_finalized=on_session_finalized, debug_util=debug_util
    )
    training = TrainingService(
        load_sessions,
        key_to_finger=builtin_key_to_finger,
        settings=settings or EngineSettings(),
        debug_util=debug_util,
    )
    return aggregator, training
