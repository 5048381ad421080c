"""
Keyboard layout data model.
Maps typed characters to fingers and rows for finger analytics and heatmaps.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from typing_coach.models.analytics import Hand

FINGER_NAMES = (
    "Left Pinky",
    "Left Ring",
    "Left Middle",
    "Left Index",
    "Left Thumb",
    "Right Thumb",
    "Right Index",
    "Right Middle",
    "Right Ring",
    "Right Pinky",
)


def finger_name(finger_index: int) -> str:
    """Return the display name of a finger, or "Unknown" for an invalid index."""
    if 0 <= finger_index < len(FINGER_NAMES):
        return FINGER_NAMES[finger_index]
    return "Unknown"


def finger_hand(finger_index: int) -> Hand:
    """Fingers 0-4 are on the left hand, 5-9 on the right."""
    return Hand.LEFT if finger_index < 5 else Hand.RIGHT


class KeyMapping(BaseModel):
    """One physical key: the QWERTY legend, the character it produces, finger and row.

    Rows count from the bottom letter row (0) upwards.
    """

    qwerty: str = Field(..., min_length=1, max_length=1)
    target: str = Field(..., min_length=1, max_length=1)
    finger: int = Field(..., ge=0, le=9)
    row: int = Field(..., ge=0, le=3)

    model_config = ConfigDict(extra="forbid", frozen=True)


class KeyboardLayout(BaseModel):
    """Keyboard layout data model with validation.
    Attributes:
        layout_id: Identifier the collaborators use for this layout.
        name: Display name.
        keys: Physical key mappings.
        home_row: Characters on the home row, left to right.
        learning_order: Groups of characters in the order they are taught.
    """

    layout_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    keys: List[KeyMapping] = Field(default_factory=list)
    home_row: List[str] = Field(default_factory=list)
    learning_order: List[List[str]] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("keys")
    @classmethod
    def validate_unique_targets(cls, v: List[KeyMapping]) -> List[KeyMapping]:
        """Each produced character may only sit on one key."""
        targets = [k.target for k in v]
        if len(targets) != len(set(targets)):
            raise ValueError("Layout keys must produce unique characters")
        return v

    def _find(self, letter: str) -> Optional[KeyMapping]:
        by_target = {k.target: k for k in self.keys}
        return by_target.get(letter.lower()) or by_target.get(letter)

    def key_to_finger(self, letter: str) -> Optional[int]:
        """Return the finger that types ``letter``, or None when the layout lacks it."""
        mapping = self._find(letter)
        return mapping.finger if mapping else None

    def key_position(self, letter: str) -> Optional[tuple[int, int]]:
        """Return (row, column) of ``letter``; the column is the finger-ordered slot."""
        mapping = self._find(letter)
        if mapping is None:
            return None
        row_keys = [k for k in self.keys if k.row == mapping.row]
        return mapping.row, row_keys.index(mapping)

    def keys_for_finger(self, finger_index: int) -> List[str]:
        """Characters typed by the given finger, in layout order."""
        return [k.target for k in self.keys if k.finger == finger_index]


def _build_keys(rows: Dict[int, str], qwerty_rows: Dict[int, str]) -> List[KeyMapping]:
    keys: List[KeyMapping] = []
    for row in sorted(rows):
        for column, (qwerty, target) in enumerate(zip(qwerty_rows[row], rows[row], strict=True)):
            keys.append(KeyMapping(qwerty=qwerty, target=target, finger=column, row=row))
    return keys


_QWERTY_ROWS = {0: "zxcvbnm,./", 1: "asdfghjkl;", 2: "qwertyuiop"}
_COLEMAK_ROWS = {0: "zxcvbkm,./", 1: "arstdhneio", 2: "qwfpgjluy;"}

QWERTY_LAYOUT = KeyboardLayout(
    layout_id="qwerty",
    name="QWERTY",
    keys=_build_keys(_QWERTY_ROWS, _QWERTY_ROWS),
    home_row=list("asdfghjkl;"),
    learning_order=[
        list("asdf"),
        list("jkl;"),
        list("gh"),
        list("rtyu"),
        list("eiwo"),
        list("qp"),
        list("vbnm"),
        list("cxz"),
        list(",./"),
    ],
)

COLEMAK_LAYOUT = KeyboardLayout(
    layout_id="colemak",
    name="Colemak",
    keys=_build_keys(_COLEMAK_ROWS, _QWERTY_ROWS),
    home_row=list("arstdhneio"),
    learning_order=[
        list("arst"),
        list("dhne"),
        list("io"),
        list("fplu"),
        list("gjy"),
        list("qwcv"),
        list("bkmxz"),
        list(",.;/"),
    ],
)

BUILTIN_LAYOUTS: Dict[str, KeyboardLayout] = {
    QWERTY_LAYOUT.layout_id: QWERTY_LAYOUT,
    COLEMAK_LAYOUT.layout_id: COLEMAK_LAYOUT,
}


def builtin_key_to_finger(layout_id: str, letter: str) -> Optional[int]:
    """Layout lookup over the bundled layouts, usable as the ``key_to_finger`` collaborator."""
    layout = BUILTIN_LAYOUTS.get(layout_id.lower())
    if layout is None:
        return None
    return layout.key_to_finger(letter)
