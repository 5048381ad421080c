"""Tests for the AdaptiveTrainingGenerator."""

from datetime import datetime

import pytest

from typing_coach.models.analytics import DifficultyLevel, ErrorType
from typing_coach.models.keystroke import KeystrokeEvent
from typing_coach.models.training import ExerciseType, Priority
from typing_coach.services.content_source import StaticContentSource
from typing_coach.services.training_generator import (
    AdaptiveTrainingGenerator,
    multi_letter_patterns,
    pattern_content,
)


@pytest.fixture
def generator(fixed_clock) -> AdaptiveTrainingGenerator:
    return AdaptiveTrainingGenerator(clock=fixed_clock)


class TestGenerateAdaptiveTraining:
    """Test cases for whole-plan generation."""

    def test_no_sessions(self, generator) -> None:
        """No evidence means no plan."""
        assert generator.generate_adaptive_training("user-1", "qwerty", []) is None

    def test_no_analyzable_letters(self, generator, make_session) -> None:
        spaces = [KeystrokeEvent(key=" ", expected_key=" ") for _ in range(5)]
        session = make_session(spaces)

        assert generator.generate_adaptive_training("user-1", "qwerty", [session]) is None

    def test_focus_letters(self, generator, mixed_session) -> None:
        """A 60% letter is a focus letter and a 98% letter never is."""
        plan = generator.generate_adaptive_training("user-1", "qwerty", [mixed_session])

        assert plan is not None
        assert plan.focus_letters == ["e"]
        assert "a" not in plan.focus_letters

    def test_plan_shape(self, generator, fixed_clock, mixed_session) -> None:
        plan = generator.generate_adaptive_training("user-1", "qwerty", [mixed_session])

        assert plan.user_id == "user-1"
        assert plan.layout_id == "qwerty"
        assert plan.generated_at == fixed_clock()
        assert plan.difficulty_level == DifficultyLevel.INTERMEDIATE
        assert plan.priority == Priority.LOW
        assert [e.id for e in plan.custom_exercises] == [
            "single-letter-e",
            "word-practice-e",
            "sentence-practice-5",
            "error-pattern-pattern-0",
            "error-pattern-pattern-2",
            "error-pattern-pattern-1",
        ]
        assert plan.estimated_practice_time_minutes == 29
        assert plan.estimated_practice_time_minutes == sum(
            e.estimated_time_minutes for e in plan.custom_exercises
        )
        assert [p.id for p in plan.error_patterns] == ["pattern-0", "pattern-2", "pattern-1"]
        assert plan.get_exercise("sentence-practice-5").target_letters == ["e"]

    def test_beginner_scenario(self, generator, make_keystrokes, make_session) -> None:
        """Average accuracy 65% with seven problem letters selects beginner."""
        keystrokes = []
        for letter in "bcdfgjk":
            keystrokes += make_keystrokes(letter, 20, 13)
        plan = generator.generate_adaptive_training(
            "user-1", "qwerty", [make_session(keystrokes)]
        )

        assert plan.difficulty_level == DifficultyLevel.BEGINNER
        assert plan.focus_letters == list("bcdfgjk")
        assert plan.priority == Priority.HIGH
        assert all(e.type != ExerciseType.SENTENCE_PRACTICE for e in plan.custom_exercises)
        assert plan.get_exercise("multi-letter-bcdfgjk") is not None
        assert plan.get_exercise("single-letter-b").content == " ".join(["b"] * 20)

    def test_focus_letters_capped_at_eight(self, generator, make_keystrokes, make_session) -> None:
        keystrokes = []
        for letter in "bcdfgjkmv":
            keystrokes += make_keystrokes(letter, 10, 5)
        plan = generator.generate_adaptive_training(
            "user-1", "qwerty", [make_session(keystrokes)]
        )

        assert len(plan.focus_letters) == 8

    def test_error_patterns_capped_at_five(self, generator, make_keystrokes, make_session) -> None:
        keystrokes = []
        for wrong in "qwzxvbn":
            keystrokes += make_keystrokes("e", 2, 1, wrong_key=wrong)
        plan = generator.generate_adaptive_training(
            "user-1", "qwerty", [make_session(keystrokes)]
        )

        assert len(plan.error_patterns) == 5

    def test_deterministic(self, generator, mixed_session) -> None:
        """Re-running on unchanged input with the same clock gives the same plan."""
        first = generator.generate_adaptive_training("user-1", "qwerty", [mixed_session])
        second = generator.generate_adaptive_training("user-1", "qwerty", [mixed_session])

        assert first == second

    def test_no_focus_letters_means_no_practice_exercises(
        self, generator, make_keystrokes, make_session
    ) -> None:
        session = make_session(make_keystrokes("a", 50, 50) + make_keystrokes("s", 50, 50))
        plan = generator.generate_adaptive_training("user-1", "qwerty", [session])

        assert plan.focus_letters == []
        assert plan.difficulty_level == DifficultyLevel.ADVANCED
        assert plan.custom_exercises == []
        assert plan.estimated_practice_time_minutes == 0


class TestPlanLevels:
    """Test cases for the level and priority thresholds."""

    @pytest.mark.parametrize(
        "average, problems, expected",
        [
            (65, 7, DifficultyLevel.BEGINNER),
            (69.9, 0, DifficultyLevel.BEGINNER),
            (95, 7, DifficultyLevel.BEGINNER),
            (70, 0, DifficultyLevel.INTERMEDIATE),
            (90, 4, DifficultyLevel.INTERMEDIATE),
            (85, 3, DifficultyLevel.ADVANCED),
        ],
    )
    def test_difficulty_level(self, average: float, problems: int, expected) -> None:
        assert AdaptiveTrainingGenerator.difficulty_level(average, problems) == expected

    @pytest.mark.parametrize(
        "count, expected",
        [(0, Priority.LOW), (2, Priority.LOW), (3, Priority.MEDIUM), (6, Priority.HIGH)],
    )
    def test_priority(self, count: int, expected: Priority) -> None:
        assert AdaptiveTrainingGenerator.priority(count) == expected


class TestLetterDrills:
    """Test cases for generate_letter_drills."""

    def test_advanced_drills(self, generator) -> None:
        drills = generator.generate_letter_drills(["e", "r", "t"], DifficultyLevel.ADVANCED)

        assert [d.id for d in drills] == [
            "single-letter-e",
            "single-letter-r",
            "single-letter-t",
            "combination-er",
            "combination-rt",
            "multi-letter-ert",
        ]
        single, combination, multi = drills[0], drills[3], drills[5]
        assert single.content == "e e e e e e e e e e"
        assert (single.difficulty, single.estimated_time_minutes, single.repetitions) == (7, 2, 5)
        assert single.success_criteria.model_dump() == {
            "min_accuracy": 95,
            "min_wpm": 15,
            "max_errors": 2,
        }
        assert combination.content == " ".join(["er re"] * 6)
        assert combination.success_criteria.max_errors == 3
        assert multi.content == "ert tre e r t erertr"
        assert multi.difficulty == 9
        assert multi.type == ExerciseType.PATTERN_PRACTICE

    def test_two_letters_have_no_multi_letter_drill(self, generator) -> None:
        drills = generator.generate_letter_drills(["e", "r"], DifficultyLevel.BEGINNER)

        assert [d.id for d in drills] == ["single-letter-e", "single-letter-r", "combination-er"]
        assert drills[2].content == " ".join(["er re"] * 10)

    def test_input_not_mutated(self, generator) -> None:
        letters = ["a", "b", "c"]
        generator.generate_letter_drills(letters, DifficultyLevel.INTERMEDIATE)

        assert letters == ["a", "b", "c"]

    def test_multi_letter_patterns(self) -> None:
        assert multi_letter_patterns(["a", "b", "c", "d"]) == [
            "abcd",
            "dcba",
            "a b c d",
            "ababcbcdc",
        ]


class TestWordAndSentencePractice:
    """Test cases for content-source driven exercises."""

    def test_word_practice_cycles_words(self, fixed_clock) -> None:
        source = StaticContentSource(words=["zip", "zoo", "cat"])
        generator = AdaptiveTrainingGenerator(content_source=source, clock=fixed_clock)

        exercise = generator.generate_word_practice(["z"], word_count=5)

        assert exercise.content == "zip zoo zip zoo zip"
        assert exercise.difficulty == 2
        assert exercise.estimated_time_minutes == 5
        assert exercise.success_criteria.max_errors == 1
        assert exercise.success_criteria.min_accuracy == 90

    def test_word_practice_without_matches(self, fixed_clock) -> None:
        source = StaticContentSource(words=["cat"])
        generator = AdaptiveTrainingGenerator(content_source=source, clock=fixed_clock)

        assert generator.generate_word_practice(["z"]) is None

    def test_sentence_practice(self, fixed_clock) -> None:
        source = StaticContentSource(sentences=["a" * 40])
        generator = AdaptiveTrainingGenerator(content_source=source, clock=fixed_clock)

        exercise = generator.generate_sentence_practice(["e", "t"], sentence_count=3)

        assert exercise.type == ExerciseType.SENTENCE_PRACTICE
        assert exercise.name == "Sentence Practice: E, T"
        assert exercise.target_letters == ["e", "t"]
        assert exercise.difficulty == 3
        assert exercise.estimated_time_minutes == 8
        assert exercise.success_criteria.max_errors == 7
        assert exercise.success_criteria.min_wpm == 25

    def test_sentence_practice_without_templates(self, fixed_clock) -> None:
        generator = AdaptiveTrainingGenerator(
            content_source=StaticContentSource(sentences=[]), clock=fixed_clock
        )

        assert generator.generate_sentence_practice(["e"]) is None


class TestPatternExercises:
    """Test cases for error pattern content and letter difficulty."""

    def test_pattern_content(self) -> None:
        assert pattern_content(ErrorType.TRANSPOSITION, ["t", "h"]) == " ".join(["th ht"] * 5)
        assert pattern_content(ErrorType.TRANSPOSITION, ["t"]) == "t" * 10
        assert pattern_content(ErrorType.OMISSION, ["h"]) == "hhh"
        assert pattern_content(ErrorType.SUBSTITUTION, ["e", "r"]) == "e e e r r r"

    def test_pattern_exercise(self, generator, mixed_session) -> None:
        pattern = generator.analyze_error_patterns(mixed_session.mistakes)[0]
        exercise = generator.generate_pattern_exercise(pattern)

        assert exercise.id == "error-pattern-pattern-0"
        assert exercise.difficulty == 8
        assert exercise.estimated_time_minutes == 4
        assert exercise.success_criteria.model_dump() == {
            "min_accuracy": 88,
            "min_wpm": 20,
            "max_errors": 4,
        }

    def test_letter_difficulty(self, generator, mixed_session) -> None:
        assert generator.letter_difficulty("e", [mixed_session]) == 40
        assert generator.letter_difficulty("E", [mixed_session]) == 40
        assert generator.letter_difficulty("z", [mixed_session]) == 50


def test_generated_at_uses_clock(make_keystrokes, make_session) -> None:
    moment = datetime(2025, 1, 2, 3, 4, 5)
    generator = AdaptiveTrainingGenerator(clock=lambda: moment)
    plan = generator.generate_adaptive_training(
        "user-1", "qwerty", [make_session(make_keystrokes("e", 10, 5))]
    )

    assert plan.generated_at == moment
