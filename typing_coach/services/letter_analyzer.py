"""Letter and finger analytics across a window of typing sessions.

This module provides:
- Per-letter accuracy, latency, difficulty score and practice recommendation
- Per-finger aggregates with weakest and strongest keys
- Heatmap data for keyboard visualization
- Classification of recurring mistakes into error patterns

Every ranking uses a stable sort, so letters and patterns that tie on the sort key keep
the order in which they were first seen. Running the analysis twice on the same sessions
gives identical output.
"""

import logging
from collections import Counter, OrderedDict
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from typing_coach.config import AnalyzerSettings, ErrorPatternThresholds
from typing_coach.models.analytics import (
    DifficultyLevel,
    ErrorPattern,
    ErrorType,
    FingerAnalytics,
    KeyProximity,
    LetterAnalytics,
    LetterHeatmapCell,
    LetterMistake,
    PracticeRecommendation,
)
from typing_coach.models.keyboard_layout import (
    QWERTY_LAYOUT,
    KeyboardLayout,
    finger_hand,
    finger_name,
)
from typing_coach.models.keystroke import MistakeEvent
from typing_coach.models.session import TypingSession, is_practice_letter
from typing_coach.services.metrics_calculator import clamp_percent, round_half_up

logger = logging.getLogger(__name__)

KeyToFinger = Callable[[str], Optional[int]]

FINGER_COUNT = 10
OFF_LAYOUT_ROW = 3
SPEED_INTENSITY_CEILING_MS = 1000.0
ERROR_INTENSITY_FOR_RED = 0.5

_GREEN = (0x22, 0xC5, 0x5E)
_YELLOW = (0xEA, 0xB3, 0x08)
_RED = (0xEF, 0x44, 0x44)

_DIFFICULTY_ORDER = (
    DifficultyLevel.BEGINNER,
    DifficultyLevel.INTERMEDIATE,
    DifficultyLevel.ADVANCED,
)


def letter_key(key: str) -> str:
    """Lowercase a key for grouping, unless lowercasing would change its length."""
    lowered = key.lower()
    return lowered if len(lowered) == len(key) else key


@dataclass
class _LetterStats:
    """Running totals for one letter."""

    attempts: int = 0
    correct: int = 0
    latency_total: float = 0.0
    latency_samples: int = 0
    finger: Optional[int] = None
    mistakes: Counter = field(default_factory=Counter)

    @property
    def average_latency(self) -> float:
        return self.latency_total / self.latency_samples if self.latency_samples else 0.0


@dataclass
class _FingerStats:
    """Running totals for one finger."""

    keystrokes: int = 0
    correct: int = 0
    latency_total: float = 0.0
    latency_samples: int = 0
    letters: List[str] = field(default_factory=list)


@dataclass
class _Cluster:
    """Mistakes sharing one (expected, actual) pair."""

    index: int
    expected: str
    actual: str
    first: MistakeEvent
    types: Counter = field(default_factory=Counter)
    type_order: List[ErrorType] = field(default_factory=list)
    frequency: int = 0

    def add(self, error_type: ErrorType) -> None:
        self.frequency += 1
        if error_type not in self.types:
            self.type_order.append(error_type)
        self.types[error_type] += 1

    @property
    def majority_type(self) -> ErrorType:
        return max(self.type_order, key=lambda t: self.types[t])


class LetterAnalyzer:
    """Analyzer for letter, finger and error pattern performance.

    Operates on a historical set of sessions, typically the most recent 50-200.
    """

    def __init__(
        self,
        settings: Optional[AnalyzerSettings] = None,
        pattern_thresholds: Optional[ErrorPatternThresholds] = None,
    ) -> None:
        """Initialize the analyzer with optional threshold overrides."""
        self.settings = settings or AnalyzerSettings()
        self.pattern_thresholds = pattern_thresholds or ErrorPatternThresholds()

    # ------------------------------------------------------------------
    # Letters
    # ------------------------------------------------------------------
    def analyze_letter_performance(
        self, sessions: Sequence[TypingSession]
    ) -> List[LetterAnalytics]:
        """Rank letters by difficulty across all keystrokes of ``sessions``.

        Keystrokes are grouped by their expected letter. Keys that are not single
        printable characters (spaces, control keys) are left out.

        Returns:
            LetterAnalytics sorted by difficulty score, hardest first.
        """
        stats: "OrderedDict[str, _LetterStats]" = OrderedDict()
        skipped = 0

        for session in sessions:
            for keystroke in session.keystrokes:
                if not is_practice_letter(keystroke.expected_key):
                    skipped += 1
                    continue
                letter = letter_key(keystroke.expected_key)
                letter_stats = stats.setdefault(letter, _LetterStats())
                letter_stats.attempts += 1
                if keystroke.is_correct:
                    letter_stats.correct += 1
                if keystroke.has_latency:
                    letter_stats.latency_total += keystroke.time_since_last_key_ms
                    letter_stats.latency_samples += 1
                if letter_stats.finger is None:
                    letter_stats.finger = keystroke.finger_index

            for mistake in session.mistakes:
                expected = letter_key(mistake.expected_key)
                if expected in stats:
                    stats[expected].mistakes[letter_key(mistake.actual_key)] += 1

        if skipped:
            logger.debug("Skipped %d keystrokes without a practice letter", skipped)

        timed = [s.average_latency for s in stats.values() if s.latency_samples]
        mean_latency = sum(timed) / len(timed) if timed else 0.0

        analytics = [
            self._build_letter_analytics(letter, letter_stats, mean_latency)
            for letter, letter_stats in stats.items()
        ]
        return sorted(analytics, key=lambda la: -la.difficulty_score)

    def _build_letter_analytics(
        self, letter: str, stats: _LetterStats, mean_latency: float
    ) -> LetterAnalytics:
        errors = stats.attempts - stats.correct
        raw_accuracy = stats.correct / stats.attempts * 100 if stats.attempts else 0.0
        raw_error_rate = errors / stats.attempts * 100 if stats.attempts else 0.0
        average_latency = stats.average_latency
        letter_accuracy = clamp_percent(raw_accuracy)

        slow = (
            stats.latency_samples > 0
            and mean_latency > 0
            and average_latency > self.settings.slow_factor * mean_latency
        )

        return LetterAnalytics(
            letter=letter,
            finger_index=stats.finger,
            total_attempts=stats.attempts,
            correct_attempts=stats.correct,
            error_count=errors,
            accuracy=letter_accuracy,
            error_rate=clamp_percent(raw_error_rate),
            average_speed_ms=round_half_up(average_latency),
            difficulty_score=self.difficulty_score(raw_accuracy, average_latency, raw_error_rate),
            practice_recommendation=self.practice_recommendation(letter_accuracy, slow),
            common_mistakes=self._common_mistakes(letter, stats.mistakes),
        )

    def difficulty_score(
        self, accuracy: float, average_latency_ms: float, error_rate: float
    ) -> int:
        """0-100 score that rises as accuracy falls and latency grows.

        Weighted 40% inaccuracy, 30% latency relative to the latency ceiling, 30% error rate.
        """
        accuracy_score = max(0.0, 100 - accuracy)
        time_score = min(100.0, average_latency_ms / self.settings.latency_ceiling_ms * 100)
        error_score = min(100.0, error_rate)
        return clamp_percent(accuracy_score * 0.4 + time_score * 0.3 + error_score * 0.3)

    def practice_recommendation(self, accuracy: int, slow: bool) -> PracticeRecommendation:
        """High for inaccurate or clearly slow letters, low for accurate ones."""
        if accuracy >= self.settings.low_priority_accuracy:
            return PracticeRecommendation.LOW
        if accuracy < self.settings.high_priority_accuracy or slow:
            return PracticeRecommendation.HIGH
        return PracticeRecommendation.MEDIUM

    @staticmethod
    def _common_mistakes(letter: str, mistakes: Counter) -> List[LetterMistake]:
        total = sum(mistakes.values())
        ranked = sorted(mistakes.items(), key=lambda item: -item[1])[:5]
        return [
            LetterMistake(
                expected_letter=letter,
                typed_letter=typed,
                frequency=count,
                percentage=clamp_percent(count / total * 100),
            )
            for typed, count in ranked
        ]

    # ------------------------------------------------------------------
    # Fingers
    # ------------------------------------------------------------------
    def analyze_finger_performance(
        self,
        sessions: Sequence[TypingSession],
        letter_analytics: Sequence[LetterAnalytics],
        key_to_finger: Optional[KeyToFinger] = None,
    ) -> List[FingerAnalytics]:
        """Aggregate accuracy and speed for each of the ten fingers.

        Args:
            sessions: Sessions to aggregate.
            letter_analytics: Output of ``analyze_letter_performance`` for the same sessions.
            key_to_finger: Layout lookup for the active layout. Without it the finger
                recorded on each keystroke is used. Letters with no finger are left out.
        """
        fingers = {index: _FingerStats() for index in range(FINGER_COUNT)}
        unmapped = set()

        for session in sessions:
            for keystroke in session.keystrokes:
                if not is_practice_letter(keystroke.expected_key):
                    continue
                letter = letter_key(keystroke.expected_key)
                finger = self._resolve_finger(letter, keystroke.finger_index, key_to_finger)
                if finger is None:
                    unmapped.add(letter)
                    continue
                finger_stats = fingers[finger]
                finger_stats.keystrokes += 1
                if keystroke.is_correct:
                    finger_stats.correct += 1
                if keystroke.has_latency:
                    finger_stats.latency_total += keystroke.time_since_last_key_ms
                    finger_stats.latency_samples += 1
                if letter not in finger_stats.letters:
                    finger_stats.letters.append(letter)

        if unmapped:
            logger.debug("No finger mapping for letters: %s", ", ".join(sorted(unmapped)))

        letter_fingers = {
            la.letter: self._resolve_finger(la.letter, la.finger_index, key_to_finger)
            for la in letter_analytics
        }

        results: List[FingerAnalytics] = []
        for index, finger_stats in fingers.items():
            own_letters = [la for la in letter_analytics if letter_fingers[la.letter] == index]
            strongest = sorted(
                (la for la in own_letters if la.accuracy >= self.settings.strong_threshold),
                key=lambda la: -la.accuracy,
            )[: self.settings.max_ranked_keys]
            weakest = sorted(
                (la for la in own_letters if la.accuracy < self.settings.weak_threshold),
                key=lambda la: la.accuracy,
            )[: self.settings.max_ranked_keys]
            weakest_keys = [la.letter for la in weakest]

            average_speed = (
                finger_stats.latency_total / finger_stats.latency_samples
                if finger_stats.latency_samples
                else 0.0
            )
            results.append(
                FingerAnalytics(
                    finger_index=index,
                    finger_name=finger_name(index),
                    hand=finger_hand(index),
                    assigned_keys=list(finger_stats.letters),
                    total_keystrokes=finger_stats.keystrokes,
                    error_count=finger_stats.keystrokes - finger_stats.correct,
                    average_accuracy=(
                        clamp_percent(finger_stats.correct / finger_stats.keystrokes * 100)
                        if finger_stats.keystrokes
                        else 0
                    ),
                    average_speed_ms=round_half_up(average_speed),
                    weakest_keys=weakest_keys,
                    strongest_keys=[la.letter for la in strongest],
                    recommended_exercises=self._finger_exercises(index, weakest_keys),
                )
            )
        return results

    @staticmethod
    def _resolve_finger(
        letter: str, recorded: Optional[int], key_to_finger: Optional[KeyToFinger]
    ) -> Optional[int]:
        finger = key_to_finger(letter) if key_to_finger is not None else recorded
        if finger is None or not 0 <= finger < FINGER_COUNT:
            return None
        return finger

    @staticmethod
    def _finger_exercises(finger_index: int, weak_keys: Sequence[str]) -> List[str]:
        name = finger_name(finger_index)
        exercises: List[str] = []
        if weak_keys:
            exercises.append(f"Practice {', '.join(weak_keys)} keys")
            exercises.append(f"{name} strengthening drills")
        exercises.append(f"{name} coordination exercises")
        return exercises

    # ------------------------------------------------------------------
    # Heatmap
    # ------------------------------------------------------------------
    def generate_letter_heatmap(
        self,
        letter_analytics: Sequence[LetterAnalytics],
        layout: KeyboardLayout = QWERTY_LAYOUT,
    ) -> List[LetterHeatmapCell]:
        """Map each letter to a keyboard position and a color for visualization.

        ``error_intensity`` is ``1 - accuracy/100``. The color runs continuously from
        green through yellow to red, reaching red at 50% errors.
        """
        cells: List[LetterHeatmapCell] = []
        off_layout_column = 0
        for la in letter_analytics:
            position = layout.key_position(la.letter)
            if position is None:
                row, column = OFF_LAYOUT_ROW, off_layout_column
                off_layout_column += 1
            else:
                row, column = position

            error_intensity = min(1.0, max(0.0, 1 - la.accuracy / 100))
            speed_intensity = min(1.0, la.average_speed_ms / SPEED_INTENSITY_CEILING_MS)
            cells.append(
                LetterHeatmapCell(
                    letter=la.letter,
                    finger_index=la.finger_index,
                    row=row,
                    column=column,
                    error_intensity=error_intensity,
                    speed_intensity=speed_intensity,
                    practice_needed=la.practice_recommendation == PracticeRecommendation.HIGH,
                    color_code=heatmap_color(error_intensity),
                )
            )
        return cells

    # ------------------------------------------------------------------
    # Error patterns
    # ------------------------------------------------------------------
    def analyze_error_patterns(
        self,
        mistakes: Sequence[MistakeEvent],
        key_to_finger: Optional[KeyToFinger] = None,
    ) -> List[ErrorPattern]:
        """Cluster mistakes by (expected, actual) and classify each cluster.

        Args:
            mistakes: Mistakes in the order they occurred.
            key_to_finger: Optional layout lookup used to judge how close the typed key
                is to the expected one.

        Returns:
            ErrorPattern list sorted by frequency, most frequent first.
        """
        return self._cluster(mistakes, self._classify_mistakes(mistakes), key_to_finger)

    def analyze_session_error_patterns(
        self,
        sessions: Sequence[TypingSession],
        key_to_finger: Optional[KeyToFinger] = None,
    ) -> List[ErrorPattern]:
        """Error patterns across ``sessions``.

        Mistakes are classified within their own session, so the last mistake of one
        session and the first of the next are never treated as a transposition.
        """
        types: List[ErrorType] = []
        for session in sessions:
            types.extend(self._classify_mistakes(session.mistakes))
        return self._cluster(flatten_mistakes(sessions), types, key_to_finger)

    def _cluster(
        self,
        mistakes: Sequence[MistakeEvent],
        types: Sequence[ErrorType],
        key_to_finger: Optional[KeyToFinger],
    ) -> List[ErrorPattern]:
        clusters: "OrderedDict[Tuple[str, str], _Cluster]" = OrderedDict()
        for mistake, error_type in zip(mistakes, types, strict=True):
            pair = (letter_key(mistake.expected_key), letter_key(mistake.actual_key))
            if pair not in clusters:
                clusters[pair] = _Cluster(
                    index=len(clusters), expected=pair[0], actual=pair[1], first=mistake
                )
            clusters[pair].add(error_type)

        patterns = [self._build_pattern(cluster, key_to_finger) for cluster in clusters.values()]
        return sorted(patterns, key=lambda p: -p.frequency)

    def _classify_mistakes(self, mistakes: Sequence[MistakeEvent]) -> List[ErrorType]:
        """Classify every mistake using its neighbours for transposition detection."""
        types: List[ErrorType] = []
        for index, mistake in enumerate(mistakes):
            if not mistake.actual_key:
                types.append(ErrorType.OMISSION)
            elif not mistake.expected_key:
                types.append(ErrorType.INSERTION)
            elif any(
                self._is_swapped(mistake, mistakes[other])
                for other in (index - 1, index + 1)
                if 0 <= other < len(mistakes)
            ):
                types.append(ErrorType.TRANSPOSITION)
            else:
                types.append(ErrorType.SUBSTITUTION)
        return types

    def _is_swapped(self, first: MistakeEvent, second: MistakeEvent) -> bool:
        """True when two nearby mistakes typed each other's expected letters."""
        gap = abs(first.position_in_text - second.position_in_text)
        return (
            0 < gap <= self.pattern_thresholds.transposition_max_gap
            and first.expected_key != first.actual_key
            and letter_key(first.expected_key) == letter_key(second.actual_key)
            and letter_key(first.actual_key) == letter_key(second.expected_key)
        )

    def _build_pattern(
        self, cluster: _Cluster, key_to_finger: Optional[KeyToFinger]
    ) -> ErrorPattern:
        error_type = cluster.majority_type
        letters: List[str] = []
        for letter in (cluster.expected, cluster.actual):
            if letter and letter not in letters:
                letters.append(letter)

        proximity = KeyProximity.UNKNOWN
        if error_type in (ErrorType.SUBSTITUTION, ErrorType.TRANSPOSITION):
            proximity = self._proximity(cluster, key_to_finger)

        return ErrorPattern(
            id=f"pattern-{cluster.index}",
            type=error_type,
            affected_letters=letters,
            frequency=cluster.frequency,
            difficulty=self._pattern_difficulty(cluster),
            proximity=proximity,
            description=self._pattern_description(error_type, letters, proximity),
            suggested_exercises=self._pattern_exercises(error_type, letters, proximity),
        )

    @staticmethod
    def _proximity(cluster: _Cluster, key_to_finger: Optional[KeyToFinger]) -> KeyProximity:
        if key_to_finger is not None:
            expected_finger = key_to_finger(cluster.expected)
            actual_finger = key_to_finger(cluster.actual)
        else:
            expected_finger = cluster.first.finger_index
            actual_finger = None
        if expected_finger is None or actual_finger is None:
            return KeyProximity.UNKNOWN
        if expected_finger == actual_finger:
            return KeyProximity.SAME_FINGER
        if finger_hand(expected_finger) != finger_hand(actual_finger):
            return KeyProximity.DIFFERENT_HAND
        if abs(expected_finger - actual_finger) == 1:
            return KeyProximity.ADJACENT_FINGER
        return KeyProximity.SAME_HAND

    def _pattern_difficulty(self, cluster: _Cluster) -> DifficultyLevel:
        """Grade by frequency, one level harder when the letter is uncommon."""
        thresholds = self.pattern_thresholds
        if cluster.frequency > thresholds.advanced_frequency:
            level = 2
        elif cluster.frequency > thresholds.intermediate_frequency:
            level = 1
        else:
            level = 0

        letter = cluster.expected or cluster.actual
        if letter.isalpha() and letter not in thresholds.common_letters:
            level = min(level + 1, len(_DIFFICULTY_ORDER) - 1)
        return _DIFFICULTY_ORDER[level]

    @staticmethod
    def _pattern_description(
        error_type: ErrorType, letters: Sequence[str], proximity: KeyProximity
    ) -> str:
        shown = ", ".join(letters[:3])
        if error_type == ErrorType.SUBSTITUTION:
            description = f"Frequently substituting {shown} keys"
            if proximity in (KeyProximity.SAME_FINGER, KeyProximity.ADJACENT_FINGER):
                description += " (neighbouring keys)"
            return description
        if error_type == ErrorType.OMISSION:
            return f"Often missing {shown} keys"
        if error_type == ErrorType.INSERTION:
            return f"Adding extra {shown} keys"
        return f"Swapping {shown} key order"

    def _pattern_exercises(
        self, error_type: ErrorType, letters: Sequence[str], proximity: KeyProximity
    ) -> List[str]:
        exercises: List[str] = []
        if error_type == ErrorType.SUBSTITUTION:
            exercises.append(f"Practice distinguishing {' vs '.join(letters)}")
            exercises.append("Slow, deliberate typing drills")
            if proximity in (KeyProximity.SAME_FINGER, KeyProximity.ADJACENT_FINGER):
                exercises.append("Finger placement and home row return drills")
        elif error_type == ErrorType.OMISSION:
            exercises.append(f"Focus on {', '.join(letters)} key placement")
            exercises.append("Rhythm and timing exercises")
        elif error_type == ErrorType.INSERTION:
            exercises.append("Accuracy over speed drills")
            exercises.append("Finger independence exercises")
        else:
            exercises.append("Letter sequence practice")
            exercises.append("Common word drills")
        return exercises[: self.pattern_thresholds.max_suggested_exercises]


def heatmap_color(error_intensity: float) -> str:
    """Continuous green-yellow-red color for an error intensity in [0, 1]."""
    t = min(1.0, max(0.0, error_intensity / ERROR_INTENSITY_FOR_RED))
    if t <= 0.5:
        start, end, local = _GREEN, _YELLOW, t / 0.5
    else:
        start, end, local = _YELLOW, _RED, (t - 0.5) / 0.5
    channels = [round_half_up(a + (b - a) * local) for a, b in zip(start, end, strict=True)]
    return "#{:02x}{:02x}{:02x}".format(*channels)


def flatten_mistakes(sessions: Sequence[TypingSession]) -> List[MistakeEvent]:
    """All mistakes of ``sessions`` in session order."""
    return [mistake for session in sessions for mistake in session.mistakes]


def bind_layout(
    key_to_finger: Optional[Callable[[str, str], Optional[int]]], layout_id: str
) -> Optional[KeyToFinger]:
    """Bind a ``key_to_finger(layout_id, letter)`` collaborator to one layout."""
    if key_to_finger is None:
        return None

    def lookup(letter: str) -> Optional[int]:
        return key_to_finger(layout_id, letter)

    return lookup
