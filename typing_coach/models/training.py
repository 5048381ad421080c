"""Data models for generated practice exercises and adaptive training plans."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from typing_coach.models.analytics import DifficultyLevel, ErrorPattern


class ExerciseType(str, Enum):
    """Kinds of generated exercises."""

    LETTER_DRILL = "letter_drill"
    WORD_PRACTICE = "word_practice"
    SENTENCE_PRACTICE = "sentence_practice"
    PATTERN_PRACTICE = "pattern_practice"


class Priority(str, Enum):
    """How urgently a training plan should be worked through."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SuccessCriteria(BaseModel):
    """Thresholds an attempt must meet for an exercise round to count as passed."""

    min_accuracy: int = Field(..., ge=0, le=100)
    min_wpm: int = Field(..., ge=0)
    max_errors: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid", frozen=True)


class CustomExercise(BaseModel):
    """A generated practice exercise."""

    id: str = Field(..., min_length=1)
    name: str
    description: str
    type: ExerciseType
    content: str
    target_letters: List[str] = Field(default_factory=list)
    estimated_time_minutes: int = Field(..., ge=1)
    difficulty: int = Field(..., ge=1, le=10)
    repetitions: int = Field(..., ge=1)
    success_criteria: SuccessCriteria

    model_config = ConfigDict(extra="forbid", frozen=True)


class AdaptiveTrainingPlan(BaseModel):
    """A time-boxed set of exercises targeting current weak letters and error patterns.

    Plans are never mutated; a newly generated plan replaces the previous one.
    """

    user_id: str
    layout_id: str
    generated_at: datetime
    focus_letters: List[str] = Field(default_factory=list, max_length=8)
    error_patterns: List[ErrorPattern] = Field(default_factory=list, max_length=5)
    custom_exercises: List[CustomExercise] = Field(default_factory=list)
    estimated_practice_time_minutes: int = Field(default=0, ge=0)
    difficulty_level: DifficultyLevel
    priority: Priority

    model_config = ConfigDict(extra="forbid", frozen=True)

    def get_exercise(self, exercise_id: str) -> Optional[CustomExercise]:
        """Return the exercise with the given id, or None."""
        for exercise in self.custom_exercises:
            if exercise.id == exercise_id:
                return exercise
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the plan to a JSON-friendly dict."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AdaptiveTrainingPlan":
        """Create a plan from a dict produced by ``to_dict``."""
        return cls.model_validate(d)


class ExerciseResult(BaseModel):
    """Stats reported by the UI after an exercise round was attempted."""

    exercise_id: str = Field(..., min_length=1)
    accuracy: int = Field(..., ge=0, le=100)
    wpm: int = Field(..., ge=0)
    errors: int = Field(..., ge=0)
    completed_at: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(extra="forbid", frozen=True)


class ExerciseOutcome(BaseModel):
    """An exercise result judged against the exercise's success criteria."""

    result: ExerciseResult
    passed: bool
    failed_criteria: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def evaluate(cls, result: ExerciseResult, criteria: SuccessCriteria) -> "ExerciseOutcome":
        """Judge a result against the success criteria of its exercise."""
        failed: List[str] = []
        if result.accuracy < criteria.min_accuracy:
            failed.append("min_accuracy")
        if result.wpm < criteria.min_wpm:
            failed.append("min_wpm")
        if result.errors > criteria.max_errors:
            failed.append("max_errors")
        return cls(result=result, passed=not failed, failed_criteria=failed)
