"""Pytest configuration and shared fixtures for the typing coach test suite."""

from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional

import pytest

from typing_coach.models.keystroke import KeystrokeEvent, MistakeEvent
from typing_coach.models.session import TypingSession

BASE_TIME = datetime(2024, 3, 4, 9, 0, 0)

KeystrokeFactory = Callable[..., List[KeystrokeEvent]]
SessionFactory = Callable[..., TypingSession]


def letter_keystrokes(
    letter: str,
    attempts: int,
    correct: int,
    latency_ms: float = 150.0,
    wrong_key: str = "x",
    finger: Optional[int] = None,
) -> List[KeystrokeEvent]:
    """Helper: ``attempts`` keystrokes for ``letter``, the first ``correct`` of them correct."""
    return [
        KeystrokeEvent(
            key=letter if i < correct else wrong_key,
            expected_key=letter,
            is_correct=i < correct,
            time_since_last_key_ms=latency_ms,
            finger_index=finger,
            timestamp_ms=(i + 1) * latency_ms,
        )
        for i in range(attempts)
    ]


def build_session(
    keystrokes: Iterable[KeystrokeEvent],
    mistakes: Optional[Iterable[MistakeEvent]] = None,
    start: datetime = BASE_TIME,
    duration_seconds: float = 60.0,
    wpm: int = 40,
    session_id: Optional[str] = None,
    user_id: str = "user-1",
    layout_id: str = "qwerty",
) -> TypingSession:
    """Helper: a finalized session whose counts match its keystrokes.

    Mistakes default to the ones described by the incorrect keystrokes.
    """
    strokes = list(keystrokes)
    if mistakes is None:
        mistakes = [
            MistakeEvent.from_keystroke(k, position=i)
            for i, k in enumerate(strokes)
            if not k.is_correct
        ]
    correct = sum(1 for k in strokes if k.is_correct)
    total = len(strokes)
    extra = {"id": session_id} if session_id else {}
    return TypingSession(
        user_id=user_id,
        layout_id=layout_id,
        start_time=start,
        end_time=start + timedelta(seconds=duration_seconds),
        duration_seconds=duration_seconds,
        total_chars=total,
        correct_chars=correct,
        incorrect_chars=total - correct,
        wpm=wpm,
        accuracy=round(correct / total * 100) if total else 0,
        keystrokes=strokes,
        mistakes=list(mistakes),
        **extra,
    )


@pytest.fixture
def make_keystrokes() -> KeystrokeFactory:
    """Factory fixture building per-letter keystroke runs."""
    return letter_keystrokes


@pytest.fixture
def make_session() -> SessionFactory:
    """Factory fixture building finalized sessions from keystrokes."""
    return build_session


@pytest.fixture
def mixed_session(make_keystrokes: KeystrokeFactory, make_session: SessionFactory) -> TypingSession:
    """A session with one weak letter (e, 60%), one strong letter (a, 98%) and a medium one."""
    keystrokes = (
        make_keystrokes("e", 50, 30, latency_ms=200.0, wrong_key="r", finger=2)
        + make_keystrokes("a", 50, 49, latency_ms=150.0, wrong_key="s", finger=0)
        + make_keystrokes("t", 50, 45, latency_ms=160.0, wrong_key="y", finger=3)
    )
    return make_session(keystrokes, session_id="session-mixed")


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """A clock that always returns the same instant."""
    return lambda: BASE_TIME
