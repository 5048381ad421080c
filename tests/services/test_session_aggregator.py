"""Tests for the SessionAggregator live session lifecycle."""

import logging
from datetime import datetime, timedelta
from unittest import mock

import pytest

from typing_coach.helpers.debug_util import DebugUtil
from typing_coach.models.keystroke import KeystrokeEvent, MistakeEvent
from typing_coach.services import metrics_calculator
from typing_coach.services.session_aggregator import SessionAggregator

START = datetime(2024, 3, 4, 9, 0, 0)


def keystrokes(text: str, typed: str) -> list:
    """Helper: one keystroke per character, one second apart."""
    return [
        KeystrokeEvent(
            key=actual,
            expected_key=expected,
            is_correct=actual == expected,
            time_since_last_key_ms=-1 if i == 0 else 1000,
            timestamp_ms=(i + 1) * 1000,
        )
        for i, (expected, actual) in enumerate(zip(text, typed))
    ]


@pytest.fixture
def clock() -> mock.Mock:
    return mock.Mock(side_effect=[START, START + timedelta(seconds=60)])


@pytest.fixture
def aggregator(clock) -> SessionAggregator:
    return SessionAggregator("user-1", clock=clock, debug_util=mock.Mock(spec=DebugUtil))


class TestLiveSession:
    """Test cases for recording keystrokes into a live session."""

    def test_idle_by_default(self, aggregator) -> None:
        assert aggregator.is_active() is False

    def test_record_without_session(self, aggregator, caplog) -> None:
        """Keystrokes and mistakes are refused while idle."""
        with caplog.at_level(logging.WARNING):
            assert aggregator.record_keystroke(KeystrokeEvent(key="a", expected_key="a")) is False
            assert aggregator.record_mistake(MistakeEvent(expected_key="a")) is False

        assert "no active session" in caplog.text

    def test_current_stats_idle(self, aggregator) -> None:
        """Idle consistency matches an empty live session."""
        idle = aggregator.current_stats()

        assert (idle.wpm, idle.accuracy, idle.consistency, idle.error_rate) == (0, 0, 100, 0)

        aggregator.start_session("qwerty")
        assert aggregator.current_stats().consistency == idle.consistency

    def test_live_stats_use_event_time(self, aggregator) -> None:
        """Ten keys in ten seconds with two errors."""
        aggregator.start_session("qwerty")
        for keystroke in keystrokes("the quick ", "thr quick,"):
            assert aggregator.record_keystroke(keystroke) is True

        stats = aggregator.current_stats()

        assert stats.accuracy == 80
        assert stats.error_rate == 20
        assert stats.wpm == 10
        assert stats.consistency == 100
        assert stats.mistake_frequency[0].expected_key == "e"

    def test_record_mistake_adds_explicit_mistake(self, aggregator) -> None:
        aggregator.start_session("qwerty")
        aggregator.record_mistake(MistakeEvent(expected_key="h", actual_key="", position_in_text=2))

        session = aggregator.end_session()

        assert [(m.expected_key, m.actual_key) for m in session.mistakes] == [("h", "")]
        assert session.total_chars == 0

    def test_start_replaces_unfinished_session(self, clock, caplog) -> None:
        clock.side_effect = [START, START, START + timedelta(seconds=30)]
        aggregator = SessionAggregator("user-1", clock=clock)
        aggregator.start_session("qwerty")
        aggregator.record_keystroke(KeystrokeEvent(key="a", expected_key="a"))

        with caplog.at_level(logging.WARNING):
            aggregator.start_session("colemak", lesson_id="lesson-2")
        session = aggregator.end_session()

        assert "discarding 1 keystrokes" in caplog.text
        assert session.layout_id == "colemak"
        assert session.lesson_id == "lesson-2"
        assert session.total_chars == 0


class TestEndSession:
    """Test cases for finalizing sessions."""

    def test_end_without_session(self, aggregator) -> None:
        assert aggregator.end_session() is None

    def test_final_metrics_use_session_duration(self, aggregator) -> None:
        aggregator.start_session("qwerty", lesson_id="lesson-1")
        for keystroke in keystrokes("the quick ", "thr quick,"):
            aggregator.record_keystroke(keystroke)

        session = aggregator.end_session()

        assert aggregator.is_active() is False
        assert session.user_id == "user-1"
        assert session.lesson_id == "lesson-1"
        assert session.start_time == START
        assert session.end_time == START + timedelta(seconds=60)
        assert session.duration_seconds == 60
        assert (session.total_chars, session.correct_chars, session.incorrect_chars) == (10, 8, 2)
        assert session.wpm == 2
        assert session.accuracy == 80
        assert session.error_rate == 20
        assert [(m.expected_key, m.actual_key) for m in session.mistakes] == [
            ("e", "r"),
            (" ", ","),
        ]
        assert [m.position_in_text for m in session.mistakes] == [2, 9]

    def test_callback_receives_copy(self, clock) -> None:
        on_finalized = mock.Mock()
        aggregator = SessionAggregator("user-1", clock=clock, on_session_finalized=on_finalized)
        aggregator.start_session("qwerty")
        aggregator.record_keystroke(KeystrokeEvent(key="a", expected_key="a"))

        session = aggregator.end_session()

        on_finalized.assert_called_once()
        delivered = on_finalized.call_args.args[0]
        assert delivered == session
        assert delivered is not session

    def test_callback_failure_is_logged(self, clock, caplog) -> None:
        on_finalized = mock.Mock(side_effect=RuntimeError("storage down"))
        aggregator = SessionAggregator("user-1", clock=clock, on_session_finalized=on_finalized)
        aggregator.start_session("qwerty")

        with caplog.at_level(logging.ERROR):
            session = aggregator.end_session()

        assert session is not None
        assert "on_session_finalized failed" in caplog.text

    def test_injected_metrics(self, clock) -> None:
        metrics = mock.Mock(wraps=metrics_calculator)
        aggregator = SessionAggregator("user-1", metrics=metrics, clock=clock)
        aggregator.start_session("qwerty")
        aggregator.record_keystroke(KeystrokeEvent(key="a", expected_key="a", timestamp_ms=500))
        aggregator.end_session()

        assert metrics.wpm.call_count == 2
        metrics.consistency.assert_called()

    def test_debug_messages(self, aggregator) -> None:
        aggregator.start_session("qwerty")
        aggregator.end_session()

        assert aggregator.debug_util.debugMessage.call_count == 2
