"""Data models for derived typing analytics.

These are pure derived views: they are recomputed from historical sessions on demand and
never persisted by the engine.
"""

from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PracticeRecommendation(str, Enum):
    """How urgently a letter needs practice."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Hand(str, Enum):
    """Hand a finger belongs to."""

    LEFT = "left"
    RIGHT = "right"


class ErrorType(str, Enum):
    """Kinds of recurring mistakes."""

    SUBSTITUTION = "substitution"
    OMISSION = "omission"
    INSERTION = "insertion"
    TRANSPOSITION = "transposition"


class DifficultyLevel(str, Enum):
    """Skill band used for error patterns and training plans."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class KeyProximity(str, Enum):
    """Physical relationship between the expected key and the key actually typed."""

    SAME_FINGER = "same_finger"
    ADJACENT_FINGER = "adjacent_finger"
    SAME_HAND = "same_hand"
    DIFFERENT_HAND = "different_hand"
    UNKNOWN = "unknown"


class KeyDifficulty(str, Enum):
    """Coarse difficulty of a single key within one session."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


_ANALYTICS_CONFIG = ConfigDict(extra="forbid", frozen=True)


class LetterMistake(BaseModel):
    """One recurring substitution for a letter."""

    expected_letter: str
    typed_letter: str
    frequency: int = Field(..., ge=1)
    percentage: int = Field(..., ge=0, le=100)

    model_config = _ANALYTICS_CONFIG


class LetterAnalytics(BaseModel):
    """Per-letter accuracy and speed across a window of sessions."""

    letter: str = Field(..., min_length=1, max_length=1)
    finger_index: Optional[int] = Field(default=None, ge=0, le=9)
    total_attempts: int = Field(..., ge=0)
    correct_attempts: int = Field(..., ge=0)
    error_count: int = Field(..., ge=0)
    accuracy: int = Field(..., ge=0, le=100)
    error_rate: int = Field(..., ge=0, le=100)
    average_speed_ms: int = Field(..., ge=0)
    difficulty_score: int = Field(..., ge=0, le=100)
    practice_recommendation: PracticeRecommendation
    common_mistakes: List[LetterMistake] = Field(default_factory=list, max_length=5)

    model_config = _ANALYTICS_CONFIG


class FingerAnalytics(BaseModel):
    """Per-finger aggregate with its weakest and strongest keys."""

    finger_index: int = Field(..., ge=0, le=9)
    finger_name: str
    hand: Hand
    assigned_keys: List[str] = Field(default_factory=list)
    total_keystrokes: int = Field(default=0, ge=0)
    error_count: int = Field(default=0, ge=0)
    average_accuracy: int = Field(default=0, ge=0, le=100)
    average_speed_ms: int = Field(default=0, ge=0)
    weakest_keys: List[str] = Field(default_factory=list, max_length=5)
    strongest_keys: List[str] = Field(default_factory=list, max_length=5)
    recommended_exercises: List[str] = Field(default_factory=list)

    model_config = _ANALYTICS_CONFIG


class LetterHeatmapCell(BaseModel):
    """Heatmap entry for one letter, for visual consumption only."""

    letter: str
    finger_index: Optional[int] = Field(default=None, ge=0, le=9)
    row: int = Field(..., ge=0, le=3)
    column: int = Field(..., ge=0)
    error_intensity: float = Field(..., ge=0.0, le=1.0)
    speed_intensity: float = Field(..., ge=0.0, le=1.0)
    practice_needed: bool
    color_code: str = Field(..., pattern="^#[0-9A-Fa-f]{6}$")

    model_config = _ANALYTICS_CONFIG


class ErrorPattern(BaseModel):
    """A recurring, classified kind of mistake clustered across mistake events."""

    id: str = Field(..., min_length=1)
    type: ErrorType
    affected_letters: List[str] = Field(default_factory=list)
    frequency: int = Field(..., ge=1)
    difficulty: DifficultyLevel
    proximity: KeyProximity = KeyProximity.UNKNOWN
    description: str
    suggested_exercises: List[str] = Field(default_factory=list, max_length=3)

    model_config = _ANALYTICS_CONFIG


class MistakeFrequency(BaseModel):
    """How often one (expected, actual) pair occurs among all mistakes."""

    expected_key: str
    actual_key: str
    count: int = Field(..., ge=1)
    percentage: int = Field(..., ge=0, le=100)
    finger_index: Optional[int] = None

    model_config = _ANALYTICS_CONFIG


class KeyPerformance(BaseModel):
    """Per-key timing and accuracy within a set of keystrokes."""

    key: str
    finger_index: Optional[int] = None
    average_time_ms: int = Field(..., ge=0)
    accuracy: int = Field(..., ge=0, le=100)
    frequency: int = Field(..., ge=1)
    difficulty: KeyDifficulty

    model_config = _ANALYTICS_CONFIG


class KeystrokePatternSummary(BaseModel):
    """Fastest, slowest, most and least accurate keys of a keystroke stream."""

    average_keystroke_time_ms: float = Field(default=0.0, ge=0.0)
    fastest_keys: List[str] = Field(default_factory=list)
    slowest_keys: List[str] = Field(default_factory=list)
    most_accurate_keys: List[str] = Field(default_factory=list)
    least_accurate_keys: List[str] = Field(default_factory=list)

    model_config = _ANALYTICS_CONFIG


class TrendPoint(BaseModel):
    """Daily average of a session metric."""

    day: date
    value: int
    session_count: int = Field(..., ge=1)

    model_config = _ANALYTICS_CONFIG


class SessionStats(BaseModel):
    """Complete statistics for one session."""

    wpm: int = Field(..., ge=0)
    accuracy: int = Field(..., ge=0, le=100)
    consistency: int = Field(..., ge=0, le=100)
    error_rate: int = Field(..., ge=0, le=100)
    keystroke_analysis: KeystrokePatternSummary
    mistake_frequency: List[MistakeFrequency] = Field(default_factory=list)

    model_config = _ANALYTICS_CONFIG


class LetterReport(BaseModel):
    """Everything the letter analytics dashboard shows for one user and layout."""

    letters: List[LetterAnalytics] = Field(default_factory=list)
    fingers: List[FingerAnalytics] = Field(default_factory=list)
    heatmap: List[LetterHeatmapCell] = Field(default_factory=list)
    error_patterns: List[ErrorPattern] = Field(default_factory=list)

    model_config = _ANALYTICS_CONFIG
