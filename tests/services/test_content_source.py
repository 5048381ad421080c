"""Tests for the practice content source."""

from typing_coach.services.content_source import (
    COMMON_WORDS,
    SENTENCE_TEMPLATES,
    StaticContentSource,
    cycle_to_count,
)


class TestStaticContentSource:
    """Test cases for StaticContentSource."""

    def test_defaults(self) -> None:
        source = StaticContentSource()

        assert source.words == list(COMMON_WORDS)
        assert source.sentence_templates() == list(SENTENCE_TEMPLATES)

    def test_words_containing_keeps_order(self) -> None:
        source = StaticContentSource(words=["Zebra", "cat", "lazy", "dog"])

        assert source.words_containing(["z"]) == ["Zebra", "lazy"]
        assert source.words_containing(["G", "c"]) == ["cat", "dog"]

    def test_words_containing_nothing(self) -> None:
        source = StaticContentSource(words=["cat"])

        assert source.words_containing([]) == []
        assert source.words_containing(["q"]) == []

    def test_blank_entries_dropped(self) -> None:
        source = StaticContentSource(words=["cat", " ", ""], sentences=["", "Hi there."])

        assert source.words == ["cat"]
        assert source.sentence_templates() == ["Hi there."]

    def test_templates_are_copied(self) -> None:
        source = StaticContentSource(sentences=["One."])
        source.sentence_templates().append("Two.")

        assert source.sentence_templates() == ["One."]


def test_cycle_to_count() -> None:
    assert cycle_to_count(["a", "b"], 5) == ["a", "b", "a", "b", "a"]
    assert cycle_to_count(["a", "b", "c"], 2) == ["a", "b"]
    assert cycle_to_count([], 3) == []
    assert cycle_to_count(["a"], 0) == []
