"""Engine configuration.

Every tunable threshold used by the analyzer, the error pattern classifier and the
training generator lives here so that product-level calibration never requires touching
the algorithms. Values can be overridden through ``TYPING_COACH_*`` environment variables.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "TYPING_COACH_"


class ConfigValidationError(Exception):
    """Exception raised when engine configuration fails validation."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class AnalyzerSettings(BaseModel):
    """Thresholds for per-letter and per-finger analysis."""

    latency_ceiling_ms: float = Field(default=500.0, gt=0)
    slow_factor: float = Field(default=1.5, gt=0)
    strong_threshold: float = Field(default=95.0, ge=0, le=100)
    weak_threshold: float = Field(default=85.0, ge=0, le=100)
    high_priority_accuracy: float = Field(default=80.0, ge=0, le=100)
    low_priority_accuracy: float = Field(default=95.0, ge=0, le=100)
    max_ranked_keys: int = Field(default=5, ge=1, le=5)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def check_accuracy_bands(self) -> "AnalyzerSettings":
        """The high priority band must sit below the low priority band."""
        if self.high_priority_accuracy > self.low_priority_accuracy:
            raise ValueError("high_priority_accuracy must be <= low_priority_accuracy")
        return self


class ErrorPatternThresholds(BaseModel):
    """Decision boundaries for classifying and grading recurring mistakes.

    The classification of mistakes is heuristic; these values are the calibration knobs.
    """

    transposition_max_gap: int = Field(default=1, ge=1)
    intermediate_frequency: int = Field(default=5, ge=0)
    advanced_frequency: int = Field(default=10, ge=0)
    common_letters: str = "etaoinshrdlu"
    max_suggested_exercises: int = Field(default=3, ge=1, le=3)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def check_frequency_order(self) -> "ErrorPatternThresholds":
        """Advanced patterns must need more occurrences than intermediate ones."""
        if self.intermediate_frequency > self.advanced_frequency:
            raise ValueError("intermediate_frequency must be <= advanced_frequency")
        return self


class GeneratorSettings(BaseModel):
    """Sizes used when building an adaptive training plan."""

    max_focus_letters: int = Field(default=8, ge=1, le=8)
    max_error_patterns: int = Field(default=5, ge=0, le=5)
    word_count: int = Field(default=20, ge=1)
    sentence_count: int = Field(default=5, ge=1)

    model_config = ConfigDict(extra="forbid", frozen=True)


class EngineSettings(BaseModel):
    """Top-level configuration for the typing coach engine."""

    session_window: int = Field(default=100, ge=1, le=1000)
    analyzer: AnalyzerSettings = Field(default_factory=AnalyzerSettings)
    error_patterns: ErrorPatternThresholds = Field(default_factory=ErrorPatternThresholds)
    generator: GeneratorSettings = Field(default_factory=GeneratorSettings)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EngineSettings":
        """Build settings from a nested mapping, raising ConfigValidationError on bad input."""
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid engine settings: {e}") from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        """Build settings from ``TYPING_COACH_*`` environment variables.

        ``TYPING_COACH_SESSION_WINDOW`` sets a top-level field and
        ``TYPING_COACH_ANALYZER__SLOW_FACTOR`` sets a nested one.
        """
        env = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        for name, value in env.items():
            if not name.startswith(ENV_PREFIX) or name == f"{ENV_PREFIX}DEBUG_MODE":
                continue
            path = name[len(ENV_PREFIX):].lower().split("__")
            target = data
            for part in path[:-1]:
                target = target.setdefault(part, {})
                if not isinstance(target, dict):
                    raise ConfigValidationError(f"Conflicting settings for {name}")
            target[path[-1]] = value
            logger.debug("Engine setting %s overridden from environment", ".".join(path))
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the settings to a plain dict."""
        return self.model_dump()
