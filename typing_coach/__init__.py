"""
Typing Coach engine.

Turns keystroke streams into typing metrics, letter and finger weakness analysis,
recurring error patterns and adaptive practice plans.
"""

__all__ = [
    "AdaptiveTrainingGenerator",
    "EngineSettings",
    "LetterAnalyzer",
    "SessionAggregator",
    "TrainingService",
]

from typing_coach.config import EngineSettings
from typing_coach.services.letter_analyzer import LetterAnalyzer
from typing_coach.services.session_aggregator import SessionAggregator
from typing_coach.services.training_generator import AdaptiveTrainingGenerator
from typing_coach.services.training_service import TrainingService
