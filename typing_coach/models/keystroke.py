"""Keystroke and mistake events recorded during practice sessions."""

import unicodedata
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


NO_PREVIOUS_KEY = -1.0


def _normalize_char(v: object) -> str:
    """Normalize character fields to NFC form for consistent comparisons."""
    if v is None:
        return ""
    if not isinstance(v, str):
        v = str(v)
    return unicodedata.normalize("NFC", v)


class KeystrokeEvent(BaseModel):
    """A single key press, already classified against the expected character.

    ``time_since_last_key_ms`` is negative (``NO_PREVIOUS_KEY``) for the first key of a
    session; latency statistics skip such samples.
    """

    key: str = ""
    expected_key: str = ""
    is_correct: bool = True
    time_since_last_key_ms: float = NO_PREVIOUS_KEY
    finger_index: Optional[int] = Field(
        default=None, ge=0, le=9, description="Finger 0-9, left pinky to right pinky"
    )
    timestamp_ms: float = Field(default=0.0, ge=0.0, description="Relative to session start")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("key", "expected_key", mode="before")
    @classmethod
    def _normalize_nfc(cls, v: object) -> str:
        return _normalize_char(v)

    @property
    def has_latency(self) -> bool:
        """True when the keystroke carries a usable inter-key latency."""
        return self.time_since_last_key_ms >= 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeystrokeEvent":
        """Create a KeystrokeEvent from a dict, accepting camelCase keys as well."""
        return cls.model_validate(_snake_keys(data, _KEYSTROKE_ALIASES))

    def to_dict(self) -> Dict[str, Any]:
        """Convert the keystroke to a JSON-friendly dictionary."""
        return self.model_dump(mode="json")


class MistakeEvent(BaseModel):
    """A recorded mistake: what was expected versus what was typed.

    An empty ``actual_key`` means nothing was typed for the expected character and an
    empty ``expected_key`` means an extra key was typed.
    """

    expected_key: str = ""
    actual_key: str = ""
    position_in_text: int = Field(default=0, ge=0)
    finger_index: Optional[int] = Field(default=None, ge=0, le=9)
    timestamp_ms: float = Field(default=0.0, ge=0.0)
    frequency: int = Field(default=1, ge=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("expected_key", "actual_key", mode="before")
    @classmethod
    def _normalize_nfc(cls, v: object) -> str:
        return _normalize_char(v)

    @classmethod
    def from_keystroke(
        cls, keystroke: KeystrokeEvent, position: int, frequency: int = 1
    ) -> "MistakeEvent":
        """Derive the mistake described by an incorrect keystroke."""
        return cls(
            expected_key=keystroke.expected_key,
            actual_key=keystroke.key,
            position_in_text=position,
            finger_index=keystroke.finger_index,
            timestamp_ms=keystroke.timestamp_ms,
            frequency=frequency,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MistakeEvent":
        """Create a MistakeEvent from a dict, accepting camelCase keys as well."""
        return cls.model_validate(_snake_keys(data, _MISTAKE_ALIASES))

    def to_dict(self) -> Dict[str, Any]:
        """Convert the mistake to a JSON-friendly dictionary."""
        return self.model_dump(mode="json")


_KEYSTROKE_ALIASES = {
    "expectedKey": "expected_key",
    "isCorrect": "is_correct",
    "timeSinceLastKey": "time_since_last_key_ms",
    "timeSinceLastKeyMs": "time_since_last_key_ms",
    "finger": "finger_index",
    "fingerIndex": "finger_index",
    "timestamp": "timestamp_ms",
    "timestampMs": "timestamp_ms",
}

_MISTAKE_ALIASES = {
    "expectedKey": "expected_key",
    "actualKey": "actual_key",
    "position": "position_in_text",
    "positionInText": "position_in_text",
    "finger": "finger_index",
    "fingerIndex": "finger_index",
    "timestamp": "timestamp_ms",
    "timestampMs": "timestamp_ms",
}


def _snake_keys(data: Dict[str, Any], aliases: Dict[str, str]) -> Dict[str, Any]:
    """Rename known camelCase keys coming from a remote collaborator."""
    return {aliases.get(name, name): value for name, value in data.items()}
