import pytest

from classroom_quiz.core.scoring import grade_band, percentage, score

from quiz_factories import make_questions


def test_score_counts_only_correct_answers():
    questions = make_questions()

    result = score(questions, {"q1": "4", "q2": "Rome", "q3": "Water"})

    assert result.score == 4
    assert result.total_points == 6


def test_unanswered_questions_score_zero():
    assert score(make_questions(), {}) == (0, 6)


def test_answers_for_unknown_questions_are_ignored():
    assert score(make_questions(), {"other": "4"}) == (0, 6)


def test_all_correct_earns_total():
    answers = {"q1": "4", "q2": "Paris", "q3": "Water"}
    assert score(make_questions(), answers) == (6, 6)


@pytest.mark.parametrize(
    ("earned", "total", "expected"),
    [(1, 6, 17), (0, 6, 0), (6, 6, 100), (1, 8, 13), (1, 3, 33), (2, 3, 67)],
)
def test_percentage_rounds_half_up(earned, total, expected):
    assert percentage(earned, total) == expected


def test_percentage_with_zero_total_is_zero():
    assert percentage(0, 0) == 0


@pytest.mark.parametrize(("percent", "band"), [(95, "excellent"), (80, "excellent"), (60, "good"), (59, "needs_improvement")])
def test_grade_band(percent, band):
    assert grade_band(percent) == band
