"""In-memory cache for analysis results keyed by user, layout and session fingerprint.

Analysis is pure, so a result stays valid for as long as the set of sessions it was
computed from is unchanged. The fingerprint identifies that set.
"""

import hashlib
from datetime import datetime, timezone
from typing import Dict, Generic, Optional, Sequence, Tuple, TypeVar

from typing_coach.models.session import TypingSession

T = TypeVar("T")


def session_fingerprint(sessions: Sequence[TypingSession]) -> str:
    """Hash of the ids and end times of ``sessions``, in order."""
    digest = hashlib.sha256()
    for session in sessions:
        digest.update(session.id.encode("utf-8"))
        digest.update(b"\x00")
        digest.update(session.end_time.isoformat().encode("utf-8"))
        digest.update(b"\x01")
    return digest.hexdigest()


class AnalyticsCacheEntry(Generic[T]):
    """Cache entry wrapping a computed value with its fingerprint."""

    def __init__(self, fingerprint: str, value: T) -> None:
        """Initialize cache entry with value."""
        self.fingerprint = fingerprint
        self.value = value
        self.cache_timestamp = datetime.now(timezone.utc)


class AnalyticsCache(Generic[T]):
    """In-memory cache of analysis results per (user_id, layout_id)."""

    def __init__(self) -> None:
        """Initialize empty cache."""
        # Map of (user_id, layout_id) -> AnalyticsCacheEntry
        self.entries: Dict[Tuple[str, str], AnalyticsCacheEntry[T]] = {}
        self.hits = 0
        self.misses = 0

    def get(self, user_id: str, layout_id: str, fingerprint: str) -> Optional[T]:
        """Cached value when its fingerprint matches, otherwise None."""
        entry = self.entries.get((user_id, layout_id))
        if entry is not None and entry.fingerprint == fingerprint:
            self.hits += 1
            return entry.value
        self.misses += 1
        return None

    def set(self, user_id: str, layout_id: str, fingerprint: str, value: T) -> None:
        """Store a value, replacing any entry for the same user and layout."""
        self.entries[(user_id, layout_id)] = AnalyticsCacheEntry(fingerprint, value)

    def invalidate(self, user_id: str) -> int:
        """Drop every entry of one user. Returns the number of entries removed."""
        keys = [key for key in self.entries if key[0] == user_id]
        for key in keys:
            del self.entries[key]
        return len(keys)

    def clear(self) -> None:
        """Clear all cache data."""
        self.entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self.entries)
