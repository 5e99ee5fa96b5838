import pytest

from classroom_quiz.core.errors import NotFoundError, ValidationError
from classroom_quiz.core.services.question_store import QuestionStore
from classroom_quiz.storage.memory_gateway import InMemoryQuizGateway

from quiz_factories import seed_quiz


def bare_question(**overrides):
    row = {
        "quiz_id": "quiz-9",
        "question": "Pick one",
        "options": ["a", "b"],
        "correct_answer": "a",
        "points": 1,
    }
    row.update(overrides)
    return row


@pytest.fixture
def empty_quiz_gateway() -> InMemoryQuizGateway:
    gateway = InMemoryQuizGateway()
    gateway.add_quiz({"id": "quiz-9", "title": "Draft", "class_id": "class-7a"})
    return gateway


def test_load_questions_in_creation_order(gateway: InMemoryQuizGateway):
    questions = QuestionStore(gateway).load_questions("quiz-1")

    assert [q.id for q in questions] == ["quiz-1-q1", "quiz-1-q2", "quiz-1-q3"]
    assert [q.points for q in questions] == [1, 2, 3]
    assert questions[1].options == ("Paris", "Rome")


def test_load_questions_without_rows_fails(empty_quiz_gateway: InMemoryQuizGateway):
    with pytest.raises(NotFoundError):
        QuestionStore(empty_quiz_gateway).load_questions("quiz-9")


def test_load_questions_is_not_cached(empty_quiz_gateway: InMemoryQuizGateway):
    store = QuestionStore(empty_quiz_gateway)
    empty_quiz_gateway.add_question(bare_question())
    assert len(store.load_questions("quiz-9")) == 1

    empty_quiz_gateway.add_question(bare_question(question="Pick another"))

    assert len(store.load_questions("quiz-9")) == 2


def test_missing_points_default_to_one(empty_quiz_gateway: InMemoryQuizGateway):
    empty_quiz_gateway.add_question(bare_question(points=None))

    (question,) = QuestionStore(empty_quiz_gateway).load_questions("quiz-9")

    assert question.points == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"correct_answer": "z"},
        {"options": ["a", "a"]},
        {"options": []},
        {"points": 0},
        {"question": "   "},
    ],
)
def test_invalid_question_rows_are_rejected(empty_quiz_gateway: InMemoryQuizGateway, overrides):
    empty_quiz_gateway.add_question(bare_question(**overrides))

    with pytest.raises(ValidationError):
        QuestionStore(empty_quiz_gateway).load_questions("quiz-9")


def test_load_quiz(gateway: InMemoryQuizGateway):
    quiz = QuestionStore(gateway).load_quiz("quiz-1")

    assert quiz.title == "Quiz quiz-1"
    assert quiz.total_questions == 3


def test_load_missing_quiz_fails(gateway: InMemoryQuizGateway):
    with pytest.raises(NotFoundError):
        QuestionStore(gateway).load_quiz("nope")


def test_load_inactive_quiz_fails(gateway: InMemoryQuizGateway):
    seed_quiz(gateway, quiz_id="quiz-off", active=False)

    with pytest.raises(NotFoundError):
        QuestionStore(gateway).load_quiz("quiz-off")
