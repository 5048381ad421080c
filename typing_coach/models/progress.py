"""User progress numbers consumed by dashboards and achievement bookkeeping."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserProgress(BaseModel):
    """Rolling totals, averages and bests for one user on one layout."""

    user_id: str
    layout_id: str
    total_sessions: int = Field(default=0, ge=0)
    total_practice_seconds: float = Field(default=0.0, ge=0.0)
    total_wpm: int = Field(default=0, ge=0)
    total_accuracy: int = Field(default=0, ge=0)
    average_wpm: int = Field(default=0, ge=0)
    average_accuracy: int = Field(default=0, ge=0, le=100)
    best_wpm: int = Field(default=0, ge=0)
    best_accuracy: int = Field(default=0, ge=0, le=100)
    last_session_at: Optional[datetime] = None

    model_config = ConfigDict(extra="forbid", frozen=True)
