"""Typing metrics for a single session and for series of sessions.

Every function here is pure and total: inputs that would make the math undefined
(zero duration, empty lists, a single timing sample) return a documented neutral value
instead of raising, because these run on every keystroke of a live session.

All rounding is half-up so that 2.5 becomes 3, the convention the dashboards expect.
"""

import math
from collections import OrderedDict
from typing import Dict, Iterable, List, Literal, Sequence, Tuple

from typing_coach.models.analytics import (
    KeyDifficulty,
    KeyPerformance,
    KeystrokePatternSummary,
    MistakeFrequency,
    SessionStats,
    TrendPoint,
)
from typing_coach.models.keystroke import KeystrokeEvent, MistakeEvent
from typing_coach.models.session import TypingSession

CHARS_PER_WORD = 5
RANKED_KEY_COUNT = 5

ACCURACY_WEIGHT = 0.4
CONSISTENCY_WEIGHT = 0.3
EXPERIENCE_WEIGHT = 0.3
EXPERIENCE_SATURATION = 100

EASY_KEY_MAX_MS = 200
EASY_KEY_MIN_ACCURACY = 95
HARD_KEY_MIN_MS = 400
HARD_KEY_MAX_ACCURACY = 80


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return int(math.floor(value + 0.5))


def clamp_percent(value: float) -> int:
    """Round and clamp a percentage into [0, 100]."""
    return max(0, min(100, round_half_up(value)))


def wpm(total_chars: int, elapsed_seconds: float, error_chars: int = 0) -> int:
    """Words per minute using 5 characters per word.

    Errors are subtracted from the characters, not added to the time, so typing fast but
    wrong is penalized on speed too.
    """
    if elapsed_seconds <= 0:
        return 0
    correct_chars = max(0, total_chars - error_chars)
    words = correct_chars / CHARS_PER_WORD
    return round_half_up(words / (elapsed_seconds / 60))


def accuracy(correct: int, total: int) -> int:
    """Percentage of correct characters; 0 when nothing was typed."""
    if total <= 0:
        return 0
    return clamp_percent(correct / total * 100)


def consistency(inter_key_times_ms: Iterable[float]) -> int:
    """Typing rhythm stability from the coefficient of variation of key latencies.

    Negative samples mark "no previous key" and are ignored. Fewer than two samples, or a
    non-positive mean, yields the maximal score of 100.
    """
    samples = [t for t in inter_key_times_ms if t >= 0]
    if len(samples) < 2:
        return 100
    mean = sum(samples) / len(samples)
    if mean <= 0:
        return 100
    variance = sum((t - mean) ** 2 for t in samples) / len(samples)
    coefficient_of_variation = math.sqrt(variance) / mean
    return clamp_percent(max(0.0, 100 - coefficient_of_variation * 100))


def error_rate(errors: int, total: int) -> int:
    """Percentage of incorrect characters; 0 when nothing was typed."""
    if total <= 0:
        return 0
    return clamp_percent(errors / total * 100)


def improvement(old_value: float, new_value: float) -> int:
    """Percentage change from old to new.

    A non-positive baseline returns 100 for any positive new value and 0 otherwise.
    """
    if old_value <= 0:
        return 100 if new_value > 0 else 0
    return round_half_up((new_value - old_value) / old_value * 100)


def learning_velocity(sessions: Sequence[TypingSession]) -> float:
    """Improvement of average WPM between the older and newer half, per session."""
    if len(sessions) < 2:
        return 0.0
    ordered = sorted(sessions, key=lambda s: s.start_time)
    wpm_values = [s.wpm for s in ordered]
    middle = len(wpm_values) // 2
    first_half, second_half = wpm_values[:middle], wpm_values[middle:]
    first_avg = sum(first_half) / len(first_half)
    second_avg = sum(second_half) / len(second_half)
    return improvement(first_avg, second_avg) / len(sessions)


def confidence_score(accuracy_pct: float, consistency_pct: float, experience_count: int) -> int:
    """Weighted blend of accuracy (40%), consistency (30%) and experience (30%).

    Experience saturates after 100 sessions.
    """
    normalized_experience = min(100.0, experience_count / EXPERIENCE_SATURATION * 100)
    score = (
        accuracy_pct * ACCURACY_WEIGHT
        + consistency_pct * CONSISTENCY_WEIGHT
        + normalized_experience * EXPERIENCE_WEIGHT
    )
    return round_half_up(score)


def _group_by_key(
    keystrokes: Iterable[KeystrokeEvent],
) -> "OrderedDict[str, List[KeystrokeEvent]]":
    groups: "OrderedDict[str, List[KeystrokeEvent]]" = OrderedDict()
    for keystroke in keystrokes:
        groups.setdefault(keystroke.key, []).append(keystroke)
    return groups


def _average_latency(keystrokes: Sequence[KeystrokeEvent]) -> float:
    latencies = [k.time_since_last_key_ms for k in keystrokes if k.has_latency]
    return sum(latencies) / len(latencies) if latencies else 0.0


def _key_metrics(keystrokes: Iterable[KeystrokeEvent]) -> List[Tuple[str, float, int, int]]:
    """(key, average latency, accuracy, count) per typed key, in first-seen order."""
    metrics: List[Tuple[str, float, int, int]] = []
    for key, strokes in _group_by_key(keystrokes).items():
        correct = sum(1 for s in strokes if s.is_correct)
        key_accuracy = accuracy(correct, len(strokes))
        metrics.append((key, _average_latency(strokes), key_accuracy, len(strokes)))
    return metrics


def keystroke_pattern_analysis(keystrokes: Sequence[KeystrokeEvent]) -> KeystrokePatternSummary:
    """Fastest, slowest, most accurate and least accurate keys, five of each.

    Ties keep the order in which keys first appeared.
    """
    if not keystrokes:
        return KeystrokePatternSummary()

    metrics = _key_metrics(keystrokes)
    by_speed = sorted(metrics, key=lambda m: m[1])
    by_slowness = sorted(metrics, key=lambda m: -m[1])
    by_accuracy = sorted(metrics, key=lambda m: -m[2])
    by_inaccuracy = sorted(metrics, key=lambda m: m[2])

    return KeystrokePatternSummary(
        average_keystroke_time_ms=_average_latency(keystrokes),
        fastest_keys=[m[0] for m in by_speed[:RANKED_KEY_COUNT]],
        slowest_keys=[m[0] for m in by_slowness[:RANKED_KEY_COUNT]],
        most_accurate_keys=[m[0] for m in by_accuracy[:RANKED_KEY_COUNT]],
        least_accurate_keys=[m[0] for m in by_inaccuracy[:RANKED_KEY_COUNT]],
    )


def mistake_frequency(mistakes: Sequence[MistakeEvent]) -> List[MistakeFrequency]:
    """Count and share of each (expected, actual) pair, most frequent first."""
    if not mistakes:
        return []

    groups: Dict[Tuple[str, str], List[MistakeEvent]] = {}
    for mistake in mistakes:
        groups.setdefault((mistake.expected_key, mistake.actual_key), []).append(mistake)

    total = len(mistakes)
    frequencies = [
        MistakeFrequency(
            expected_key=expected,
            actual_key=actual,
            count=len(group),
            percentage=clamp_percent(len(group) / total * 100),
            finger_index=group[0].finger_index,
        )
        for (expected, actual), group in groups.items()
    ]
    return sorted(frequencies, key=lambda f: -f.count)


def key_performance(keystrokes: Sequence[KeystrokeEvent]) -> List[KeyPerformance]:
    """Per-key timing, accuracy and difficulty, most frequently typed keys first."""
    performances: List[KeyPerformance] = []
    groups = _group_by_key(keystrokes)
    for key, avg_time, key_accuracy, count in _key_metrics(keystrokes):
        if avg_time < EASY_KEY_MAX_MS and key_accuracy > EASY_KEY_MIN_ACCURACY:
            difficulty = KeyDifficulty.EASY
        elif avg_time > HARD_KEY_MIN_MS or key_accuracy < HARD_KEY_MAX_ACCURACY:
            difficulty = KeyDifficulty.HARD
        else:
            difficulty = KeyDifficulty.MEDIUM
        performances.append(
            KeyPerformance(
                key=key,
                finger_index=groups[key][0].finger_index,
                average_time_ms=round_half_up(avg_time),
                accuracy=key_accuracy,
                frequency=count,
                difficulty=difficulty,
            )
        )
    return sorted(performances, key=lambda p: -p.frequency)


def performance_trends(
    sessions: Sequence[TypingSession], metric: Literal["wpm", "accuracy"] = "wpm"
) -> List[TrendPoint]:
    """Daily average of ``metric`` in chronological order."""
    days: "OrderedDict[object, List[int]]" = OrderedDict()
    for session in sorted(sessions, key=lambda s: s.start_time):
        days.setdefault(session.start_time.date(), []).append(getattr(session, metric))
    return [
        TrendPoint(
            day=day, value=round_half_up(sum(values) / len(values)), session_count=len(values)
        )
        for day, values in days.items()
    ]


def session_stats(session: TypingSession) -> SessionStats:
    """Recompute every statistic of a session from its counts and events."""
    return SessionStats(
        wpm=wpm(session.total_chars, session.duration_seconds, session.incorrect_chars),
        accuracy=accuracy(session.correct_chars, session.total_chars),
        consistency=consistency(k.time_since_last_key_ms for k in session.keystrokes),
        error_rate=error_rate(session.incorrect_chars, session.total_chars),
        keystroke_analysis=keystroke_pattern_analysis(session.keystrokes),
        mistake_frequency=mistake_frequency(session.mistakes),
    )
