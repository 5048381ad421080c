"""Training service coordinating session loading, analysis, plans and exercise results.

The service is the seam between the engine and its collaborators: it pulls the recent
session window from persistence, serves analysis from the cache when the session set is
unchanged, and notifies listeners about new plans and completed exercises.
"""

import logging
from typing import Callable, List, Optional

from typing_coach.config import EngineSettings
from typing_coach.helpers.debug_util import DebugUtil
from typing_coach.models.analytics import LetterReport
from typing_coach.models.keyboard_layout import BUILTIN_LAYOUTS, QWERTY_LAYOUT
from typing_coach.models.session import TypingSession
from typing_coach.models.training import AdaptiveTrainingPlan, ExerciseOutcome, ExerciseResult
from typing_coach.services.analytics_cache import AnalyticsCache, session_fingerprint
from typing_coach.services.letter_analyzer import bind_layout
from typing_coach.services.training_generator import AdaptiveTrainingGenerator

logger = logging.getLogger(__name__)

LoadSessions = Callable[[str, int], List[TypingSession]]
KeyToFingerLookup = Callable[[str, str], Optional[int]]
PlanCallback = Callable[[AdaptiveTrainingPlan], None]
ExerciseCallback = Callable[[str, ExerciseOutcome], None]


class TrainingService:
    """Service for generating training plans and letter reports for a user."""

    def __init__(
        self,
        load_sessions: LoadSessions,
        key_to_finger: Optional[KeyToFingerLookup] = None,
        generator: Optional[AdaptiveTrainingGenerator] = None,
        settings: Optional[EngineSettings] = None,
        on_plan_generated: Optional[PlanCallback] = None,
        on_exercise_completed: Optional[ExerciseCallback] = None,
        debug_util: Optional[DebugUtil] = None,
    ) -> None:
        """Initialize the service with its collaborators.

        Args:
            load_sessions: ``load_sessions(user_id, limit)`` returning the most recent sessions.
            key_to_finger: ``key_to_finger(layout_id, letter)`` layout lookup.
            generator: Plan generator; built from ``settings`` when omitted.
            settings: Engine settings; defaults are used when omitted.
            on_plan_generated: Called with every freshly generated plan.
            on_exercise_completed: Called with the exercise id and its judged outcome.
            debug_util: Debug output helper.
        """
        self.settings = settings or EngineSettings()
        self.load_sessions = load_sessions
        self.key_to_finger = key_to_finger
        self.generator = generator or AdaptiveTrainingGenerator(settings=self.settings)
        self.on_plan_generated = on_plan_generated
        self.on_exercise_completed = on_exercise_completed
        self.debug_util = debug_util or DebugUtil()
        self.plan_cache: AnalyticsCache[AdaptiveTrainingPlan] = AnalyticsCache()
        self.report_cache: AnalyticsCache[LetterReport] = AnalyticsCache()
        self.last_plan: Optional[AdaptiveTrainingPlan] = None

    def _sessions(self, user_id: str) -> List[TypingSession]:
        sessions = list(self.load_sessions(user_id, self.settings.session_window))
        self.debug_util.debugMessage(f"Loaded {len(sessions)} sessions for user {user_id}")
        return sessions

    def generate_plan(self, user_id: str, layout_id: str) -> Optional[AdaptiveTrainingPlan]:
        """Return a training plan for the user's recent sessions on ``layout_id``.

        Returns:
            The plan, or None when there is not enough data yet.
        """
        sessions = [s for s in self._sessions(user_id) if s.layout_id == layout_id]
        fingerprint = session_fingerprint(sessions)

        cached = self.plan_cache.get(user_id, layout_id, fingerprint)
        if cached is not None:
            logger.debug("Serving cached training plan for user %s", user_id)
            self.last_plan = cached
            return cached

        plan = self.generator.generate_adaptive_training(
            user_id, layout_id, sessions, bind_layout(self.key_to_finger, layout_id)
        )
        if plan is None:
            return None

        self.plan_cache.set(user_id, layout_id, fingerprint, plan)
        self.last_plan = plan
        if self.on_plan_generated is not None:
            try:
                self.on_plan_generated(plan)
            except Exception:
                logger.exception("on_plan_generated failed for user %s", user_id)
        return plan

    def letter_report(self, user_id: str, layout_id: str) -> LetterReport:
        """Letter, finger, heatmap and error pattern analytics for the dashboard."""
        sessions = [s for s in self._sessions(user_id) if s.layout_id == layout_id]
        fingerprint = session_fingerprint(sessions)

        cached = self.report_cache.get(user_id, layout_id, fingerprint)
        if cached is not None:
            return cached

        analyzer = self.generator.analyzer
        lookup = bind_layout(self.key_to_finger, layout_id)
        letters = analyzer.analyze_letter_performance(sessions)
        report = LetterReport(
            letters=letters,
            fingers=analyzer.analyze_finger_performance(sessions, letters, lookup),
            heatmap=analyzer.generate_letter_heatmap(
                letters, BUILTIN_LAYOUTS.get(layout_id.lower(), QWERTY_LAYOUT)
            ),
            error_patterns=analyzer.analyze_session_error_patterns(sessions, lookup),
        )
        self.report_cache.set(user_id, layout_id, fingerprint, report)
        return report

    def record_exercise_completed(
        self, exercise_id: str, result: ExerciseResult
    ) -> Optional[ExerciseOutcome]:
        """Judge an attempted exercise of the last plan against its success criteria.

        Returns:
            The outcome, or None when the exercise is not part of the last plan.
        """
        plan = self.last_plan
        exercise = plan.get_exercise(exercise_id) if plan is not None else None
        if plan is None or exercise is None:
            logger.warning("Completed exercise %s is not part of the current plan", exercise_id)
            return None

        outcome = ExerciseOutcome.evaluate(result, exercise.success_criteria)
        removed = self.plan_cache.invalidate(plan.user_id) + self.report_cache.invalidate(
            plan.user_id
        )
        logger.info(
            "Exercise %s %s (%d cached analyses invalidated)",
            exercise_id,
            "passed" if outcome.passed else "failed",
            removed,
        )

        if self.on_exercise_completed is not None:
            try:
                self.on_exercise_completed(exercise_id, outcome)
            except Exception:
                logger.exception("on_exercise_completed failed for exercise %s", exercise_id)
        return outcome
