from concurrent.futures import ThreadPoolExecutor

import pytest

from classroom_quiz.core.errors import DuplicateAttemptError, SessionClosedError, StorageError
from classroom_quiz.core.models import SessionState
from classroom_quiz.core.services.attempt_session import AttemptSession
from classroom_quiz.core.services.attempt_submitter import AttemptSubmitter
from classroom_quiz.core.services.session_timer import SessionTimer
from classroom_quiz.storage.memory_gateway import InMemoryQuizGateway

from quiz_factories import STUDENT, FakeClock, make_questions, make_quiz


class FailingGateway(InMemoryQuizGateway):
    def insert_attempt(self, row):
        raise StorageError("backend unavailable")


def start_session(clock: FakeClock) -> AttemptSession:
    return AttemptSession.start(make_quiz(), make_questions(), STUDENT, clock=clock)


def test_submit_scores_and_persists(clock: FakeClock):
    gateway = InMemoryQuizGateway()
    session = start_session(clock)
    session.record_answer("q1", "4")
    session.record_answer("q2", "Rome")
    clock.advance(95.7)

    result = AttemptSubmitter(gateway, clock=clock).submit(session)

    assert (result.score, result.total_points) == (1, 6)
    assert result.time_taken_seconds == 95
    assert result.answers == {"q1": "4", "q2": "Rome"}
    assert result.id is not None
    assert session.state is SessionState.COMPLETED
    assert session.result == result
    stored = gateway.fetch_attempts(STUDENT)
    assert len(stored) == 1
    assert stored[0]["score"] == 1


def test_submit_cancels_timer(clock: FakeClock):
    session = start_session(clock)
    timer = SessionTimer(started_at=session.started_at, time_limit_seconds=60, clock=clock)

    AttemptSubmitter(InMemoryQuizGateway(), clock=clock).submit(session, timer)

    assert timer.is_cancelled()


def test_resubmitting_returns_cached_result(clock: FakeClock):
    gateway = InMemoryQuizGateway()
    submitter = AttemptSubmitter(gateway, clock=clock)
    session = start_session(clock)

    first = submitter.submit(session)
    second = submitter.submit(session)

    assert first is second
    assert gateway.insert_count == 1


def test_two_sessions_for_same_pair_store_one_row(clock: FakeClock):
    gateway = InMemoryQuizGateway()
    submitter = AttemptSubmitter(gateway, clock=clock)
    first_tab = start_session(clock)
    second_tab = start_session(clock)
    second_timer = SessionTimer(started_at=second_tab.started_at, time_limit_seconds=60, clock=clock)

    submitter.submit(first_tab)
    with pytest.raises(DuplicateAttemptError):
        submitter.submit(second_tab, second_timer)

    assert second_tab.state is SessionState.COMPLETED
    assert second_tab.result is None
    assert second_timer.is_cancelled()
    assert gateway.insert_count == 1
    with pytest.raises(DuplicateAttemptError):
        submitter.submit(second_tab)


def test_concurrent_submits_store_exactly_one_row(clock: FakeClock):
    gateway = InMemoryQuizGateway()
    submitter = AttemptSubmitter(gateway, clock=clock)
    sessions = [start_session(clock) for _ in range(2)]

    def attempt(session: AttemptSession) -> str:
        try:
            submitter.submit(session)
        except DuplicateAttemptError:
            return "duplicate"
        return "stored"

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = sorted(pool.map(attempt, sessions))

    assert outcomes == ["duplicate", "stored"]
    assert gateway.insert_count == 1


def test_storage_failure_leaves_session_in_progress(clock: FakeClock):
    session = start_session(clock)
    session.record_answer("q1", "4")

    with pytest.raises(StorageError):
        AttemptSubmitter(FailingGateway(), clock=clock).submit(session)

    assert session.state is SessionState.IN_PROGRESS
    assert session.get_answers() == {"q1": "4"}


def test_abandoned_session_cannot_be_submitted(clock: FakeClock):
    gateway = InMemoryQuizGateway()
    session = start_session(clock)
    session.abandon()

    with pytest.raises(SessionClosedError):
        AttemptSubmitter(gateway, clock=clock).submit(session)

    assert gateway.insert_count == 0
