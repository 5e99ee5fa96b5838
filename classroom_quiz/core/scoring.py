"""Scoring of finished quiz attempts."""

from __future__ import annotations

import math
from typing import Iterable, Mapping, NamedTuple

from classroom_quiz.core.models import Question

EXCELLENT_THRESHOLD = 80
GOOD_THRESHOLD = 60


class ScoreResult(NamedTuple):
    score: int
    total_points: int


def score(questions: Iterable[Question], answers: Mapping[str, str]) -> ScoreResult:
    """Sum the points of correctly answered questions.

    Unanswered questions and wrong options contribute nothing; there is no
    partial credit and no negative marking.
    """
    earned = 0
    total = 0
    for question in questions:
        total += question.points
        if answers.get(question.id) == question.correct_answer:
            earned += question.points
    return ScoreResult(score=earned, total_points=total)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def percentage(earned: int, total_points: int) -> int:
    """Return the score as a whole percentage, rounding halves up."""
    if total_points <= 0:
        return 0
    return round_half_up(earned * 100 / total_points)


def grade_band(percent: int) -> str:
    if percent >= EXCELLENT_THRESHOLD:
        return "excellent"
    if percent >= GOOD_THRESHOLD:
        return "good"
    return "needs_improvement"
