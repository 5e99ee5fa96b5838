import pytest

from classroom_quiz.core.quiz_manager import QuizManager
from classroom_quiz.storage.memory_gateway import InMemoryQuizGateway

from quiz_factories import CLASS_ID, STUDENT, FakeClock, seed_quiz


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway() -> InMemoryQuizGateway:
    store = InMemoryQuizGateway()
    store.enroll_student(STUDENT, CLASS_ID)
    seed_quiz(store)
    return store


@pytest.fixture
def manager(gateway: InMemoryQuizGateway, clock: FakeClock) -> QuizManager:
    quiz_manager = QuizManager(gateway=gateway, clock=clock)
    yield quiz_manager
    quiz_manager.shutdown()
