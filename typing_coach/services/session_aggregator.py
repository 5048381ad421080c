"""Live session aggregation.

The aggregator owns the single live session: it is fed one keystroke at a time by the
input layer, keeps running totals, and freezes the finished session into a
``TypingSession`` that is handed to the persistence collaborator by value.
"""

import logging
from datetime import datetime
from types import ModuleType
from typing import Callable, Optional

from typing_coach.helpers.debug_util import DebugUtil
from typing_coach.models.analytics import KeystrokePatternSummary, SessionStats
from typing_coach.models.keystroke import KeystrokeEvent, MistakeEvent
from typing_coach.models.keystroke_collection import KeystrokeCollection
from typing_coach.models.session import TypingSession
from typing_coach.services import metrics_calculator

logger = logging.getLogger(__name__)

SessionCallback = Callable[[TypingSession], None]


class LiveSession:
    """Mutable running state of the session currently being typed."""

    def __init__(
        self, user_id: str, layout_id: str, lesson_id: Optional[str], start_time: datetime
    ) -> None:
        self.user_id = user_id
        self.layout_id = layout_id
        self.lesson_id = lesson_id
        self.start_time = start_time
        self.collection = KeystrokeCollection()
        self.elapsed_seconds = 0.0
        self.wpm = 0
        self.accuracy = 0
        self.error_rate = 0


class SessionAggregator:
    """Accumulates keystrokes into a typing session and finalizes it.

    The metric functions are taken from ``metrics`` (by default the
    ``metrics_calculator`` module); any object exposing the same functions works.
    """

    def __init__(
        self,
        user_id: str,
        metrics: ModuleType = metrics_calculator,
        clock: Callable[[], datetime] = datetime.now,
        on_session_finalized: Optional[SessionCallback] = None,
        debug_util: Optional[DebugUtil] = None,
    ) -> None:
        """Initialize the aggregator for one user.

        Args:
            user_id: Owner of every session this aggregator produces.
            metrics: Provider of the metric functions.
            clock: Wall clock used for session start and end times.
            on_session_finalized: Called with each finished session.
            debug_util: Debug output helper.
        """
        self.user_id = user_id
        self.metrics = metrics
        self.clock = clock
        self.on_session_finalized = on_session_finalized
        self.debug_util = debug_util or DebugUtil()
        self._live: Optional[LiveSession] = None

    def is_active(self) -> bool:
        """True while a session is being recorded."""
        return self._live is not None

    def start_session(self, layout_id: str, lesson_id: Optional[str] = None) -> None:
        """Start a new live session, discarding any unfinished one."""
        if self._live is not None:
            logger.warning(
                "Starting a new session while one is active; discarding %d keystrokes",
                self._live.collection.get_total_count(),
            )
        self._live = LiveSession(self.user_id, layout_id, lesson_id, self.clock())
        self.debug_util.debugMessage(f"Session started on layout {layout_id}")

    def record_keystroke(self, keystroke: KeystrokeEvent) -> bool:
        """Append a keystroke and refresh the live metrics.

        Incorrect keystrokes also record the mistake they describe.

        Returns:
            False when no session is active.
        """
        live = self._live
        if live is None:
            logger.warning("Keystroke received with no active session; ignored")
            return False

        collection = live.collection
        collection.add_keystroke(keystroke)
        if not keystroke.is_correct:
            collection.derive_mistake(keystroke)

        live.elapsed_seconds = max(live.elapsed_seconds, keystroke.timestamp_ms / 1000)
        self._refresh(live, live.elapsed_seconds)
        return True

    def record_mistake(self, mistake: MistakeEvent) -> bool:
        """Append an explicit mistake, e.g. an omission detected by the input layer.

        Returns:
            False when no session is active.
        """
        if self._live is None:
            logger.warning("Mistake received with no active session; ignored")
            return False
        self._live.collection.add_mistake(mistake)
        return True

    def current_stats(self) -> SessionStats:
        """Live statistics of the active session.

        When idle, every metric is zero except consistency, which reports the neutral 100
        used whenever there are no inter-key samples.
        """
        live = self._live
        if live is None:
            return SessionStats(
                wpm=0,
                accuracy=0,
                consistency=self.metrics.consistency([]),
                error_rate=0,
                keystroke_analysis=KeystrokePatternSummary(),
            )
        collection = live.collection
        return SessionStats(
            wpm=live.wpm,
            accuracy=live.accuracy,
            consistency=self.metrics.consistency(collection.latencies()),
            error_rate=live.error_rate,
            keystroke_analysis=self.metrics.keystroke_pattern_analysis(collection.keystrokes),
            mistake_frequency=self.metrics.mistake_frequency(collection.mistakes),
        )

    def end_session(self) -> Optional[TypingSession]:
        """Finalize the live session and hand it to ``on_session_finalized``.

        Returns:
            The frozen session, or None when no session was active.
        """
        live = self._live
        if live is None:
            logger.warning("end_session called with no active session")
            return None
        self._live = None

        end_time = self.clock()
        duration = max(0.0, (end_time - live.start_time).total_seconds())
        self._refresh(live, duration)
        collection = live.collection
        total = collection.get_total_count()

        session = TypingSession(
            user_id=live.user_id,
            layout_id=live.layout_id,
            lesson_id=live.lesson_id,
            start_time=live.start_time,
            end_time=max(end_time, live.start_time),
            duration_seconds=duration,
            total_chars=total,
            correct_chars=collection.correct_count,
            incorrect_chars=collection.get_incorrect_count(),
            wpm=live.wpm,
            accuracy=live.accuracy,
            consistency=self.metrics.consistency(collection.latencies()),
            error_rate=live.error_rate,
            keystrokes=list(collection.keystrokes),
            mistakes=list(collection.mistakes),
        )
        logger.info("Session finalized: %s", session.get_summary())
        self.debug_util.debugMessage(f"Session {session.id} finalized with {total} keystrokes")

        if self.on_session_finalized is not None:
            try:
                self.on_session_finalized(session.model_copy(deep=True))
            except Exception:
                logger.exception("on_session_finalized failed for session %s", session.id)
        return session

    def _refresh(self, live: LiveSession, elapsed_seconds: float) -> None:
        collection = live.collection
        total = collection.get_total_count()
        errors = collection.get_incorrect_count()
        live.wpm = self.metrics.wpm(total, elapsed_seconds, errors)
        live.accuracy = self.metrics.accuracy(collection.correct_count, total)
        live.error_rate = self.metrics.error_rate(errors, total)
