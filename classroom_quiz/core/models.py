"""Domain models for the quiz session engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Mapping

from classroom_quiz.constants.quiz_constants import DEFAULT_QUESTION_POINTS, SECONDS_PER_MINUTE


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO timestamp as returned by the storage backend."""
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).replace("Z", "+00:00")
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(slots=True, frozen=True)
class Quiz:
    """Quiz metadata visible to learners of a class."""

    id: str
    title: str
    description: str | None = None
    class_id: str | None = None
    total_questions: int = 0
    time_limit_minutes: int | None = None
    active: bool = True
    created_at: datetime | None = None

    @property
    def time_limit_seconds(self) -> int | None:
        if not self.time_limit_minutes:
            return None
        return self.time_limit_minutes * SECONDS_PER_MINUTE

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Quiz":
        return cls(
            id=str(row["id"]),
            title=row["title"],
            description=row.get("description"),
            class_id=row.get("class_id"),
            total_questions=row.get("total_questions") or 0,
            time_limit_minutes=row.get("time_limit_minutes"),
            active=bool(row.get("active", True)),
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass(slots=True, frozen=True)
class Question:
    """Multiple-choice question; the correct answer is one of the options."""

    id: str
    quiz_id: str
    prompt: str
    options: tuple[str, ...]
    correct_answer: str
    points: int = DEFAULT_QUESTION_POINTS
    explanation: str | None = None

    def has_option(self, option: str) -> bool:
        return option in self.options

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Question":
        points = row.get("points")
        return cls(
            id=str(row["id"]),
            quiz_id=str(row["quiz_id"]),
            prompt=row["question"],
            options=tuple(row.get("options") or ()),
            correct_answer=row["correct_answer"],
            points=DEFAULT_QUESTION_POINTS if points is None else int(points),
            explanation=row.get("explanation"),
        )


@dataclass(slots=True, frozen=True)
class AttemptResult:
    """Persisted outcome of one learner's pass through a quiz."""

    quiz_id: str
    student_id: str
    answers: Mapping[str, str]
    score: int
    total_points: int
    completed_at: datetime
    time_taken_seconds: int
    id: str | None = None

    def to_row(self) -> dict[str, Any]:
        return {
            "quiz_id": self.quiz_id,
            "student_id": self.student_id,
            "answers": dict(self.answers),
            "score": self.score,
            "total_points": self.total_points,
            "completed_at": self.completed_at.isoformat(),
            "time_taken_seconds": self.time_taken_seconds,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AttemptResult":
        return cls(
            id=None if row.get("id") is None else str(row["id"]),
            quiz_id=str(row["quiz_id"]),
            student_id=str(row["student_id"]),
            answers=dict(row.get("answers") or {}),
            score=int(row.get("score") or 0),
            total_points=int(row["total_points"]),
            completed_at=parse_timestamp(row["completed_at"]),
            time_taken_seconds=int(row.get("time_taken_seconds") or 0),
        )


class SessionState(Enum):
    NOT_STARTED = auto()
    IN_PROGRESS = auto()
    SUBMITTING = auto()
    COMPLETED = auto()
    ABANDONED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.ABANDONED)


@dataclass(slots=True)
class QuizOverview:
    """Aggregate quiz statistics for a learner's dashboard."""

    total_quizzes: int
    completed_quizzes: int
    pending_quizzes: int
    average_score: int


@dataclass(slots=True)
class AvailableQuiz:
    """A quiz offered to the learner together with their attempt, if any."""

    quiz: Quiz
    attempt: AttemptResult | None = None

    @property
    def completed(self) -> bool:
        return self.attempt is not None
