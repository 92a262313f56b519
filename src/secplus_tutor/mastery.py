"""Weakness score and mastery tier estimation."""
from dataclasses import replace
from datetime import datetime

from secplus_tutor.models import AcronymProgress, MasteryLevel

SWIPE_DIRECTIONS = ("left", "right")


def calculate_weakness_score(correct: int, wrong: int) -> float:
    """Share of test answers that were wrong; 0.5 for items never tested."""
    if correct + wrong == 0:
        return 0.5
    return wrong / (correct + wrong)


def calculate_accuracy_rate(correct: int, wrong: int) -> float:
    if correct + wrong == 0:
        return 0.0
    return correct / (correct + wrong)


def calculate_mastery_level(progress: AcronymProgress) -> MasteryLevel:
    """Map progress counters to a mastery tier.

    Checks run in order and the first match wins, so the streak only gates
    the top tier.
    """
    if progress.times_tested_correct + progress.times_tested_wrong == 0:
        return MasteryLevel.UNSEEN
    if progress.accuracy_rate < 0.5:
        return MasteryLevel.LEARNING
    if progress.accuracy_rate < 0.8:
        return MasteryLevel.PRACTICING
    if progress.accuracy_rate >= 0.95 and progress.streak >= 3:
        return MasteryLevel.MASTERED
    return MasteryLevel.CONFIDENT


def apply_test_answer(progress: AcronymProgress, correct: bool, now: datetime) -> AcronymProgress:
    """Return a copy of progress updated with one scored test answer.

    Args:
        progress: Current record (use AcronymProgress.unseen for new items)
        correct: Whether the learner answered correctly
        now: Timestamp stored as last_tested

    Returns:
        New AcronymProgress with counters and derived fields recomputed.
    """
    times_correct = progress.times_tested_correct + (1 if correct else 0)
    times_wrong = progress.times_tested_wrong + (0 if correct else 1)
    updated = replace(
        progress,
        times_tested_correct=times_correct,
        times_tested_wrong=times_wrong,
        accuracy_rate=calculate_accuracy_rate(times_correct, times_wrong),
        weakness_score=calculate_weakness_score(times_correct, times_wrong),
        streak=progress.streak + 1 if correct else 0,
        last_tested=now,
    )
    return replace(updated, mastery_level=calculate_mastery_level(updated))


def apply_training_swipe(progress: AcronymProgress, direction: str, now: datetime) -> AcronymProgress:
    """Return a copy of progress updated with one training swipe.

    A right swipe means "I know this", a left swipe means "needs practice".
    Test-derived fields (accuracy, weakness, streak) are left alone.
    """
    if direction not in SWIPE_DIRECTIONS:
        raise ValueError(f"Unknown swipe direction: {direction!r}")
    updated = replace(
        progress,
        times_seen_in_training=progress.times_seen_in_training + 1,
        confidence_swipes=progress.confidence_swipes + (1 if direction == "right" else 0),
        practice_swipes=progress.practice_swipes + (1 if direction == "left" else 0),
        last_seen=now,
    )
    return replace(updated, mastery_level=calculate_mastery_level(updated))
