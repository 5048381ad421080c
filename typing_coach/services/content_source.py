"""Content sources for generated practice text.

The training generator never embeds word or sentence lists itself; it asks a
``ContentSource`` so that larger corpora can be swapped in without touching the
generation algorithm.
"""

from typing import Iterable, List, Optional, Protocol, Sequence

COMMON_WORDS = (
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "had",
    "her", "was", "one", "our", "out", "day", "get", "has", "him", "his",
    "how", "man", "new", "now", "old", "see", "two", "way", "who", "boy",
    "did", "its", "let", "put", "say", "she", "too", "use",
)

SENTENCE_TEMPLATES = (
    "The quick brown fox jumps over the lazy dog.",
    "She sells seashells by the seashore.",
    "A journey of a thousand miles begins with a single step.",
    "Practice makes perfect when you focus on accuracy.",
    "Every expert was once a beginner who never gave up.",
)


class ContentSource(Protocol):
    """Capability the training generator needs to build word and sentence exercises."""

    def words_containing(self, letters: Sequence[str]) -> List[str]:
        """Return words that contain at least one of ``letters``, in a stable order."""
        ...

    def sentence_templates(self) -> List[str]:
        """Return the sentences that sentence practice cycles through."""
        ...


class StaticContentSource:
    """Content source backed by fixed in-memory word and sentence lists."""

    def __init__(
        self,
        words: Optional[Iterable[str]] = None,
        sentences: Optional[Iterable[str]] = None,
    ) -> None:
        """Initialize with the given lists, defaulting to the built-in ones.

        Args:
            words: Candidate practice words. Blank entries are dropped.
            sentences: Sentence templates. Blank entries are dropped.
        """
        self.words: List[str] = [
            w.strip() for w in (words if words is not None else COMMON_WORDS) if w.strip()
        ]
        self.sentences: List[str] = [
            s.strip()
            for s in (sentences if sentences is not None else SENTENCE_TEMPLATES)
            if s.strip()
        ]

    def words_containing(self, letters: Sequence[str]) -> List[str]:
        """Words containing any of ``letters`` (case-insensitive), in list order."""
        wanted = [letter.lower() for letter in letters if letter]
        if not wanted:
            return []
        return [word for word in self.words if any(letter in word.lower() for letter in wanted)]

    def sentence_templates(self) -> List[str]:
        """Return a copy of the sentence templates."""
        return list(self.sentences)


def cycle_to_count(items: Sequence[str], count: int) -> List[str]:
    """Repeat ``items`` in order until ``count`` entries are produced."""
    if not items or count <= 0:
        return []
    return [items[i % len(items)] for i in range(count)]
