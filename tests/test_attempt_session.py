from datetime import timedelta

import pytest

from classroom_quiz.core.errors import (
    AlreadyAttemptedError,
    NotFoundError,
    SessionClosedError,
    ValidationError,
)
from classroom_quiz.core.models import AttemptResult, SessionState
from classroom_quiz.core.scoring import score
from classroom_quiz.core.services.attempt_session import AttemptSession

from quiz_factories import STUDENT, FakeClock, make_questions, make_quiz


@pytest.fixture
def session(clock: FakeClock) -> AttemptSession:
    return AttemptSession.start(make_quiz(), make_questions(), STUDENT, clock=clock)


def test_start_initializes_empty_session(session: AttemptSession, clock: FakeClock):
    assert session.state is SessionState.IN_PROGRESS
    assert session.current_index == 0
    assert session.get_answers() == {}
    assert session.started_at == clock.now
    assert session.get_current_question().id == "q1"


def test_start_rejects_already_attempted_quiz(clock: FakeClock):
    history = [
        AttemptResult(
            quiz_id="quiz-1",
            student_id=STUDENT,
            answers={},
            score=0,
            total_points=6,
            completed_at=clock.now,
            time_taken_seconds=30,
        )
    ]

    with pytest.raises(AlreadyAttemptedError):
        AttemptSession.start(make_quiz(), make_questions(), STUDENT, attempt_history=history, clock=clock)


def test_start_ignores_history_of_other_quizzes(clock: FakeClock):
    history = [
        AttemptResult(
            quiz_id="quiz-2",
            student_id=STUDENT,
            answers={},
            score=1,
            total_points=1,
            completed_at=clock.now,
            time_taken_seconds=5,
        )
    ]

    session = AttemptSession.start(make_quiz(), make_questions(), STUDENT, attempt_history=history, clock=clock)

    assert session.is_in_progress()


def test_start_without_questions_fails(clock: FakeClock):
    with pytest.raises(NotFoundError):
        AttemptSession.start(make_quiz(), (), STUDENT, clock=clock)


def test_record_answer_replaces_previous_choice(session: AttemptSession):
    session.record_answer("q2", "Paris")
    session.record_answer("q2", "Rome")

    assert session.get_answers() == {"q2": "Rome"}
    assert session.get_answered_count() == 1


def test_reanswering_never_adds_credit(session: AttemptSession):
    session.record_answer("q3", "Water")
    session.record_answer("q3", "Water")

    assert score(session.questions, session.get_answers()).score == 3


def test_record_answer_does_not_move_index(session: AttemptSession):
    session.record_answer("q3", "Salt")

    assert session.current_index == 0


def test_record_answer_rejects_unknown_option(session: AttemptSession):
    session.record_answer("q1", "4")

    with pytest.raises(ValidationError):
        session.record_answer("q1", "42")

    assert session.get_answers() == {"q1": "4"}


def test_record_answer_rejects_unknown_question(session: AttemptSession):
    with pytest.raises(ValidationError):
        session.record_answer("missing", "4")

    assert session.get_answers() == {}


def test_previous_at_first_question_is_noop(session: AttemptSession):
    session.previous()

    assert session.current_index == 0


def test_next_saturates_at_last_question(session: AttemptSession):
    for _ in range(5):
        session.next()

    assert session.current_index == 2


@pytest.mark.parametrize("index", [-1, 3, 100])
def test_go_to_out_of_range_is_noop(session: AttemptSession, index: int):
    session.go_to(1)
    session.go_to(index)

    assert session.current_index == 1


def test_go_to_valid_index(session: AttemptSession):
    session.go_to(2)

    assert session.get_current_question().id == "q3"


def test_questions_are_a_snapshot(clock: FakeClock):
    questions = list(make_questions())
    session = AttemptSession.start(make_quiz(), questions, STUDENT, clock=clock)

    questions.pop()

    assert len(session.questions) == 3


def test_elapsed_since_start_follows_clock(session: AttemptSession, clock: FakeClock):
    clock.advance(42)

    assert session.elapsed_since_start() == 42.0
    assert session.started_at == clock.now - timedelta(seconds=42)


def test_publish_elapsed_updates_session(session: AttemptSession):
    session.publish_elapsed(12.5)

    assert session.elapsed_seconds == 12.5


def test_abandon_closes_session(session: AttemptSession):
    session.abandon()

    assert session.state is SessionState.ABANDONED
    with pytest.raises(SessionClosedError):
        session.record_answer("q1", "4")
    with pytest.raises(SessionClosedError):
        session.next()


def test_submission_transitions(session: AttemptSession):
    session.mark_submitting()
    with pytest.raises(SessionClosedError):
        session.record_answer("q1", "4")

    session.revert_submitting()
    session.record_answer("q1", "4")

    session.mark_submitting()
    session.mark_completed(None)
    assert session.state is SessionState.COMPLETED
    assert session.state.is_terminal
