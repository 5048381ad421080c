"""
Models package for the typing coach engine.

This package contains the event, session, analytics and training data models.
"""

__all__ = [
    "AdaptiveTrainingPlan",
    "CustomExercise",
    "ErrorPattern",
    "FingerAnalytics",
    "KeyboardLayout",
    "KeystrokeEvent",
    "LetterAnalytics",
    "MistakeEvent",
    "TypingSession",
    "UserProgress",
]

from typing_coach.models.analytics import ErrorPattern, FingerAnalytics, LetterAnalytics
from typing_coach.models.keyboard_layout import KeyboardLayout
from typing_coach.models.keystroke import KeystrokeEvent, MistakeEvent
from typing_coach.models.progress import UserProgress
from typing_coach.models.session import TypingSession
from typing_coach.models.training import AdaptiveTrainingPlan, CustomExercise
