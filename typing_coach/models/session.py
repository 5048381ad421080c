"""Typing session model.

A TypingSession is one practice attempt. It is built up by the session aggregator while
live and becomes a frozen value once it is handed to the persistence collaborator.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from typing_coach.models.keystroke import KeystrokeEvent, MistakeEvent


class TypingSession(BaseModel):
    """Pydantic model for a finalized typing practice session.

    The character counts must add up and every percentage metric stays in [0, 100].
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    layout_id: str
    lesson_id: Optional[str] = None
    start_time: datetime
    end_time: datetime
    duration_seconds: float = Field(default=0.0, ge=0.0)
    total_chars: int = Field(default=0, ge=0)
    correct_chars: int = Field(default=0, ge=0)
    incorrect_chars: int = Field(default=0, ge=0)
    wpm: int = Field(default=0, ge=0)
    accuracy: int = Field(default=0, ge=0, le=100)
    consistency: int = Field(default=100, ge=0, le=100)
    error_rate: int = Field(default=0, ge=0, le=100)
    keystrokes: List[KeystrokeEvent] = Field(default_factory=list)
    mistakes: List[MistakeEvent] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("user_id", "layout_id")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Identifiers must not be blank."""
        if not v or not v.strip():
            raise ValueError("Identifier must not be blank")
        return v

    @model_validator(mode="after")
    def check_counts_and_times(self) -> "TypingSession":
        """Validate cross-field constraints for character counts and timestamps."""
        if self.correct_chars + self.incorrect_chars != self.total_chars:
            raise ValueError("correct_chars + incorrect_chars must equal total_chars")
        if self.start_time > self.end_time:
            raise ValueError("start_time must be before end_time")
        return self

    @property
    def letter_keystrokes(self) -> List[KeystrokeEvent]:
        """Keystrokes whose expected key is a single printable, non-space character."""
        return [k for k in self.keystrokes if is_practice_letter(k.expected_key)]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the session to a JSON-friendly dict."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TypingSession":
        """Create a TypingSession from a dict produced by ``to_dict`` or a collaborator."""
        data = dict(d)
        data["keystrokes"] = [
            k if isinstance(k, KeystrokeEvent) else KeystrokeEvent.from_dict(k)
            for k in data.get("keystrokes", [])
        ]
        data["mistakes"] = [
            m if isinstance(m, MistakeEvent) else MistakeEvent.from_dict(m)
            for m in data.get("mistakes", [])
        ]
        return cls.model_validate(data)

    def get_summary(self) -> str:
        """Return a one-line summary of the session."""
        return (
            f"Session {self.id} (user {self.user_id}, layout {self.layout_id}): "
            f"{self.wpm} wpm, {self.accuracy}% accuracy, {self.consistency}% consistency, "
            f"{self.total_chars} chars, {self.incorrect_chars} errors"
        )


def is_practice_letter(key: str) -> bool:
    """Return True for keys that can be analysed and drilled as letters."""
    return len(key) == 1 and key.isprintable() and not key.isspace()
