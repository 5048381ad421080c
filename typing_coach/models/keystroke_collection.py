"""Keystroke collection for accumulating the events of a live session."""

from collections import Counter
from typing import List, Tuple

from typing_coach.models.keystroke import KeystrokeEvent, MistakeEvent


class KeystrokeCollection:
    """Collection class for the keystrokes and mistakes of one live session."""

    def __init__(self) -> None:
        """Initialize the collection with empty keystroke and mistake lists."""
        self.keystrokes: List[KeystrokeEvent] = []
        self.mistakes: List[MistakeEvent] = []
        self.correct_count = 0
        self._pair_counts: Counter[Tuple[str, str]] = Counter()

    def add_keystroke(self, keystroke: KeystrokeEvent) -> None:
        """Add a single keystroke and update the running correct count.

        Args:
            keystroke: The keystroke to add to the collection
        """
        self.keystrokes.append(keystroke)
        if keystroke.is_correct:
            self.correct_count += 1

    def add_mistake(self, mistake: MistakeEvent) -> MistakeEvent:
        """Add a mistake, stamping it with the running count of its (expected, actual) pair.

        Returns the stored mistake.
        """
        pair = (mistake.expected_key, mistake.actual_key)
        self._pair_counts[pair] += 1
        stored = mistake.model_copy(update={"frequency": self._pair_counts[pair]})
        self.mistakes.append(stored)
        return stored

    def derive_mistake(self, keystroke: KeystrokeEvent) -> MistakeEvent:
        """Record the mistake described by an incorrect keystroke already in the collection."""
        position = len(self.keystrokes) - 1
        return self.add_mistake(MistakeEvent.from_keystroke(keystroke, position=max(0, position)))

    def latencies(self) -> List[float]:
        """Inter-key latencies of all keystrokes that carry one."""
        return [k.time_since_last_key_ms for k in self.keystrokes if k.has_latency]

    def clear(self) -> None:
        """Clear both lists and the counters."""
        self.keystrokes.clear()
        self.mistakes.clear()
        self.correct_count = 0
        self._pair_counts.clear()

    def get_total_count(self) -> int:
        """Get the count of recorded keystrokes."""
        return len(self.keystrokes)

    def get_incorrect_count(self) -> int:
        """Get the count of incorrect keystrokes."""
        return len(self.keystrokes) - self.correct_count
