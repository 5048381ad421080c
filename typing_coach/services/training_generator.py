"""Adaptive training plan generation.

Turns letter analytics and error patterns into a set of practice exercises. Content is
built from repetition and combination rules plus an injected ``ContentSource``; given the
same sessions and the same clock the generator returns the same plan.
"""

import logging
import math
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from typing_coach.config import EngineSettings
from typing_coach.models.analytics import (
    DifficultyLevel,
    ErrorPattern,
    ErrorType,
    PracticeRecommendation,
)
from typing_coach.models.keystroke import MistakeEvent
from typing_coach.models.session import TypingSession
from typing_coach.models.training import (
    AdaptiveTrainingPlan,
    CustomExercise,
    ExerciseType,
    Priority,
    SuccessCriteria,
)
from typing_coach.services.content_source import (
    ContentSource,
    StaticContentSource,
    cycle_to_count,
)
from typing_coach.services.letter_analyzer import (
    KeyToFinger,
    LetterAnalyzer,
    letter_key,
)

logger = logging.getLogger(__name__)

DEFAULT_LETTER_DIFFICULTY = 50

SINGLE_LETTER_CRITERIA = SuccessCriteria(min_accuracy=95, min_wpm=15, max_errors=2)
COMBINATION_CRITERIA = SuccessCriteria(min_accuracy=90, min_wpm=18, max_errors=3)
MULTI_LETTER_CRITERIA = SuccessCriteria(min_accuracy=85, min_wpm=22, max_errors=5)
ERROR_PATTERN_CRITERIA = SuccessCriteria(min_accuracy=88, min_wpm=20, max_errors=4)

_SINGLE_REPS = {
    DifficultyLevel.BEGINNER: 20,
    DifficultyLevel.INTERMEDIATE: 15,
    DifficultyLevel.ADVANCED: 10,
}
_COMBINATION_REPS = {
    DifficultyLevel.BEGINNER: 10,
    DifficultyLevel.INTERMEDIATE: 8,
    DifficultyLevel.ADVANCED: 6,
}
_SINGLE_DIFFICULTY = {
    DifficultyLevel.BEGINNER: 3,
    DifficultyLevel.INTERMEDIATE: 5,
    DifficultyLevel.ADVANCED: 7,
}
_COMBINATION_DIFFICULTY = {
    DifficultyLevel.BEGINNER: 4,
    DifficultyLevel.INTERMEDIATE: 6,
    DifficultyLevel.ADVANCED: 8,
}
_MULTI_LETTER_DIFFICULTY = {
    DifficultyLevel.BEGINNER: 5,
    DifficultyLevel.INTERMEDIATE: 7,
    DifficultyLevel.ADVANCED: 9,
}
_PATTERN_DIFFICULTY = _COMBINATION_DIFFICULTY


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


class AdaptiveTrainingGenerator:
    """Builds adaptive training plans from a user's session history."""

    def __init__(
        self,
        analyzer: Optional[LetterAnalyzer] = None,
        content_source: Optional[ContentSource] = None,
        settings: Optional[EngineSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the generator.

        Args:
            analyzer: Letter analyzer; built from ``settings`` when omitted.
            content_source: Words and sentences for practice text.
            settings: Engine settings; defaults are used when omitted.
            clock: Source of the plan's ``generated_at`` timestamp.
        """
        self.settings = settings or EngineSettings()
        self.analyzer = analyzer or LetterAnalyzer(
            self.settings.analyzer, self.settings.error_patterns
        )
        self.content_source = content_source or StaticContentSource()
        self.clock = clock

    def generate_adaptive_training(
        self,
        user_id: str,
        layout_id: str,
        sessions: Sequence[TypingSession],
        key_to_finger: Optional[KeyToFinger] = None,
    ) -> Optional[AdaptiveTrainingPlan]:
        """Generate a training plan from the given sessions.

        Returns:
            The plan, or None when there are no sessions or no analyzable letters.
        """
        if not sessions:
            logger.info("No sessions for user %s; not generating a training plan", user_id)
            return None

        letter_analytics = self.analyzer.analyze_letter_performance(sessions)
        if not letter_analytics:
            logger.info("No analyzable letters for user %s; not generating a plan", user_id)
            return None

        generator_settings = self.settings.generator
        problem_letters = [
            la.letter
            for la in letter_analytics
            if la.practice_recommendation == PracticeRecommendation.HIGH
        ]
        focus_letters = problem_letters[: generator_settings.max_focus_letters]

        patterns = self.analyzer.analyze_session_error_patterns(sessions, key_to_finger)
        patterns = patterns[: generator_settings.max_error_patterns]

        average_accuracy = sum(la.accuracy for la in letter_analytics) / len(letter_analytics)
        level = self.difficulty_level(average_accuracy, len(problem_letters))

        exercises: List[CustomExercise] = []
        if focus_letters:
            exercises.extend(self.generate_letter_drills(focus_letters, level))
            word_exercise = self.generate_word_practice(
                focus_letters, generator_settings.word_count
            )
            if word_exercise is not None:
                exercises.append(word_exercise)
            if level != DifficultyLevel.BEGINNER:
                sentence_exercise = self.generate_sentence_practice(
                    focus_letters, generator_settings.sentence_count
                )
                if sentence_exercise is not None:
                    exercises.append(sentence_exercise)
        exercises.extend(self.generate_pattern_exercise(pattern) for pattern in patterns)

        plan = AdaptiveTrainingPlan(
            user_id=user_id,
            layout_id=layout_id,
            generated_at=self.clock(),
            focus_letters=focus_letters,
            error_patterns=patterns,
            custom_exercises=exercises,
            estimated_practice_time_minutes=sum(e.estimated_time_minutes for e in exercises),
            difficulty_level=level,
            priority=self.priority(len(focus_letters)),
        )
        logger.info(
            "Generated %s training plan for user %s: %d focus letters, %d exercises",
            level.value,
            user_id,
            len(focus_letters),
            len(exercises),
        )
        return plan

    @staticmethod
    def difficulty_level(average_accuracy: float, problem_letter_count: int) -> DifficultyLevel:
        """Plan level from average letter accuracy and the number of problem letters."""
        if average_accuracy < 70 or problem_letter_count > 6:
            return DifficultyLevel.BEGINNER
        if average_accuracy < 85 or problem_letter_count > 3:
            return DifficultyLevel.INTERMEDIATE
        return DifficultyLevel.ADVANCED

    @staticmethod
    def priority(focus_letter_count: int) -> Priority:
        """Plan priority from the number of focus letters."""
        if focus_letter_count > 5:
            return Priority.HIGH
        if focus_letter_count > 2:
            return Priority.MEDIUM
        return Priority.LOW

    def analyze_error_patterns(
        self,
        mistakes: Sequence[MistakeEvent],
        key_to_finger: Optional[KeyToFinger] = None,
    ) -> List[ErrorPattern]:
        """Error patterns of ``mistakes``, most frequent first."""
        return self.analyzer.analyze_error_patterns(mistakes, key_to_finger)

    def letter_difficulty(self, letter: str, sessions: Sequence[TypingSession]) -> int:
        """Difficulty score of one letter, or 50 when the letter was never typed."""
        wanted = letter_key(letter)
        for la in self.analyzer.analyze_letter_performance(sessions):
            if la.letter == wanted:
                return la.difficulty_score
        return DEFAULT_LETTER_DIFFICULTY

    # ------------------------------------------------------------------
    # Letter drills
    # ------------------------------------------------------------------
    def generate_letter_drills(
        self, letters: Sequence[str], level: DifficultyLevel
    ) -> List[CustomExercise]:
        """Single-letter, pair and multi-letter drills for the given focus letters."""
        exercises: List[CustomExercise] = []

        for letter in letters:
            exercises.append(
                CustomExercise(
                    id=f"single-letter-{letter}",
                    name=f"Letter {letter.upper()} Drill",
                    description=f"Focus on accuracy and speed for the letter {letter}",
                    type=ExerciseType.LETTER_DRILL,
                    content=" ".join([letter] * _SINGLE_REPS[level]),
                    target_letters=[letter],
                    estimated_time_minutes=2,
                    difficulty=_SINGLE_DIFFICULTY[level],
                    repetitions=5,
                    success_criteria=SINGLE_LETTER_CRITERIA,
                )
            )

        for first, second in zip(letters, letters[1:]):
            pair = f"{first}{second} {second}{first}"
            exercises.append(
                CustomExercise(
                    id=f"combination-{first}{second}",
                    name=f"{first.upper()}{second.upper()} Combination",
                    description=f"Practice transitioning between {first} and {second}",
                    type=ExerciseType.LETTER_DRILL,
                    content=" ".join([pair] * _COMBINATION_REPS[level]),
                    target_letters=[first, second],
                    estimated_time_minutes=3,
                    difficulty=_COMBINATION_DIFFICULTY[level],
                    repetitions=3,
                    success_criteria=COMBINATION_CRITERIA,
                )
            )

        if len(letters) >= 3:
            joined = "".join(letters)
            exercises.append(
                CustomExercise(
                    id=f"multi-letter-{joined}",
                    name="Multi-Letter Pattern",
                    description=f"Complex patterns using {', '.join(letters)}",
                    type=ExerciseType.PATTERN_PRACTICE,
                    content=" ".join(multi_letter_patterns(letters)),
                    target_letters=list(letters),
                    estimated_time_minutes=5,
                    difficulty=_MULTI_LETTER_DIFFICULTY[level],
                    repetitions=2,
                    success_criteria=MULTI_LETTER_CRITERIA,
                )
            )
        return exercises

    # ------------------------------------------------------------------
    # Words and sentences
    # ------------------------------------------------------------------
    def generate_word_practice(
        self, letters: Sequence[str], word_count: int = 20
    ) -> Optional[CustomExercise]:
        """Word list exercise built from words containing any of ``letters``.

        Returns None when the content source has no matching words.
        """
        candidates = self.content_source.words_containing(letters)
        words = cycle_to_count(candidates, word_count)
        if not words:
            logger.debug("No practice words contain any of %s", ", ".join(letters))
            return None

        average_length = sum(len(w) for w in words) / len(words)
        joined = "".join(letters)
        return CustomExercise(
            id=f"word-practice-{joined}",
            name="Targeted Word Practice",
            description=f"Words focusing on {', '.join(letters)}",
            type=ExerciseType.WORD_PRACTICE,
            content=" ".join(words),
            target_letters=list(letters),
            estimated_time_minutes=max(5, math.ceil(len(words) / 10)),
            difficulty=_clamp(math.ceil(average_length / 2), 1, 10),
            repetitions=3,
            success_criteria=SuccessCriteria(
                min_accuracy=90, min_wpm=20, max_errors=math.ceil(len(words) * 0.1)
            ),
        )

    def generate_sentence_practice(
        self, letters: Sequence[str], sentence_count: int = 5
    ) -> Optional[CustomExercise]:
        """Sentence exercise for ``letters``, cycling the content source's templates."""
        sentences = cycle_to_count(self.content_source.sentence_templates(), sentence_count)
        if not sentences:
            logger.debug("Content source has no sentence templates")
            return None

        content = " ".join(sentences)
        average_length = sum(len(s) for s in sentences) / len(sentences)
        return CustomExercise(
            id=f"sentence-practice-{len(sentences)}",
            name=f"Sentence Practice: {', '.join(letters).upper()}",
            description=f"Practice sentences emphasizing {', '.join(letters)} letters",
            type=ExerciseType.SENTENCE_PRACTICE,
            content=content,
            target_letters=list(letters),
            estimated_time_minutes=max(8, len(sentences) * 2),
            difficulty=_clamp(math.ceil(average_length / 20), 3, 10),
            repetitions=2,
            success_criteria=SuccessCriteria(
                min_accuracy=85, min_wpm=25, max_errors=math.ceil(len(content) * 0.05)
            ),
        )

    # ------------------------------------------------------------------
    # Error patterns
    # ------------------------------------------------------------------
    def generate_pattern_exercise(self, pattern: ErrorPattern) -> CustomExercise:
        """Exercise targeting one recurring error pattern."""
        return CustomExercise(
            id=f"error-pattern-{pattern.id}",
            name=f"{pattern.type.value.capitalize()} Error Fix",
            description=pattern.description,
            type=ExerciseType.PATTERN_PRACTICE,
            content=pattern_content(pattern.type, pattern.affected_letters),
            target_letters=list(pattern.affected_letters),
            estimated_time_minutes=4,
            difficulty=_PATTERN_DIFFICULTY[pattern.difficulty],
            repetitions=3,
            success_criteria=ERROR_PATTERN_CRITERIA,
        )


def multi_letter_patterns(letters: Sequence[str]) -> List[str]:
    """Forward, reversed, spaced and alternating sequences of ``letters``."""
    forward = "".join(letters)
    alternating = "".join(
        letters[i] + letters[i + 1] + letters[i] for i in range(len(letters) - 1)
    )
    return [forward, forward[::-1], " ".join(letters), alternating]


def pattern_content(error_type: ErrorType, letters: Sequence[str]) -> str:
    """Practice text for an error pattern of the given type."""
    if error_type == ErrorType.TRANSPOSITION:
        if len(letters) >= 2:
            first, second = letters[0], letters[1]
            return " ".join([f"{first}{second} {second}{first}"] * 5)
        return "".join(letters) * 10
    if error_type == ErrorType.OMISSION:
        return " ".join(letter * 3 for letter in letters)
    return " ".join(" ".join([letter] * 3) for letter in letters)
