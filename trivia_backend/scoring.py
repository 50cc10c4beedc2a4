"""Grading and ranking rules.

Pure functions over ``UserStatistics`` so the rules can be exercised without
a running room.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Tuple, TypeVar

from .constants import AnswerResult
from .schemas import TriviaQuestion, UserStatistics

T = TypeVar("T")


def grade_answer(stats: UserStatistics, question: TriviaQuestion, can_skip: bool) -> AnswerResult:
    """Apply the outcome of *question* to *stats* and return it.

    A member who picked nothing is SKIPPED when the room allows skipping
    (no points either way, but it still counts against their accuracy);
    otherwise an empty selection is simply wrong. Points never drop below 0.
    """
    if not stats.has_selection and can_skip:
        result = AnswerResult.SKIPPED
        stats.points_change = 0
        stats.questions_wrong += 1
    elif stats.selected_answer_index == question.correct_answer_index:
        result = AnswerResult.CORRECT
        stats.points_change = question.point_value
        stats.questions_right += 1
    else:
        result = AnswerResult.INCORRECT
        stats.points_change = -question.point_value
        stats.questions_wrong += 1

    stats.points = max(0, stats.points + stats.points_change)
    return result


def accuracy(stats: UserStatistics) -> Optional[float]:
    """Fraction of answered questions that were right, or None before any were answered."""
    if stats.questions_total == 0:
        return None
    return stats.questions_right / stats.questions_total


def ranking_key(stats: UserStatistics) -> Tuple[int, int, float]:
    # Points first, then accuracy. An undefined accuracy loses to any defined one.
    ratio = accuracy(stats)
    if ratio is None:
        return (-stats.points, 1, 0.0)
    return (-stats.points, 0, -ratio)


def rank(entries: Iterable[Tuple[T, UserStatistics]]) -> List[Tuple[T, UserStatistics]]:
    """Order ``(who, stats)`` pairs best first. Full ties keep their input order."""
    return sorted(entries, key=lambda entry: ranking_key(entry[1]))


__all__ = ["grade_answer", "accuracy", "ranking_key", "rank"]
