"""In-process storage backend with the same uniqueness rules as the database."""

from __future__ import annotations

import copy
from datetime import datetime
from threading import Lock
from uuid import uuid4

from classroom_quiz.core.errors import DuplicateAttemptError
from classroom_quiz.core.models import utcnow
from classroom_quiz.storage.base import Row


def _sort_key(row: Row, column: str) -> str:
    value = row.get(column)
    if isinstance(value, datetime):
        return value.isoformat()
    return value or ""


class InMemoryQuizGateway:
    """Stores quiz tables in dictionaries guarded by a lock."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._quizzes: dict[str, Row] = {}
        self._questions: list[Row] = []
        self._enrollments: dict[str, str] = {}
        self._attempts: dict[tuple[str, str], Row] = {}
        self._insert_count: int = 0

    # --- Seeding ---

    def add_quiz(self, row: Row) -> Row:
        stored = dict(row)
        stored.setdefault("id", uuid4().hex)
        stored.setdefault("active", True)
        stored.setdefault("created_at", utcnow().isoformat())
        with self._lock:
            self._quizzes[stored["id"]] = stored
        return dict(stored)

    def add_question(self, row: Row) -> Row:
        stored = copy.deepcopy(row)
        stored.setdefault("id", uuid4().hex)
        with self._lock:
            # Insertion order stands in for created_at when it is missing.
            stored.setdefault("created_at", f"{len(self._questions):012d}")
            self._questions.append(stored)
            quiz = self._quizzes.get(stored["quiz_id"])
            if quiz is not None:
                quiz["total_questions"] = sum(
                    1 for q in self._questions if q["quiz_id"] == stored["quiz_id"]
                )
        return dict(stored)

    def enroll_student(self, student_id: str, class_id: str) -> None:
        with self._lock:
            self._enrollments[student_id] = class_id

    # --- Gateway contract ---

    def fetch_quiz(self, quiz_id: str) -> Row | None:
        with self._lock:
            row = self._quizzes.get(quiz_id)
            return dict(row) if row is not None else None

    def fetch_questions(self, quiz_id: str) -> list[Row]:
        with self._lock:
            rows = [copy.deepcopy(q) for q in self._questions if q["quiz_id"] == quiz_id]
        return sorted(rows, key=lambda r: _sort_key(r, "created_at"))

    def fetch_student_class(self, student_id: str) -> str | None:
        with self._lock:
            return self._enrollments.get(student_id)

    def fetch_active_quizzes(self, class_id: str) -> list[Row]:
        with self._lock:
            rows = [
                dict(q)
                for q in self._quizzes.values()
                if q.get("class_id") == class_id and q.get("active")
            ]
        return sorted(rows, key=lambda r: _sort_key(r, "created_at"), reverse=True)

    def fetch_attempts(self, student_id: str) -> list[Row]:
        with self._lock:
            rows = [
                copy.deepcopy(a)
                for (_, owner), a in self._attempts.items()
                if owner == student_id
            ]
        return sorted(rows, key=lambda r: _sort_key(r, "completed_at"), reverse=True)

    def insert_attempt(self, row: Row) -> Row:
        key = (row["quiz_id"], row["student_id"])
        with self._lock:
            if key in self._attempts:
                raise DuplicateAttemptError(*key)
            stored = copy.deepcopy(row)
            stored.setdefault("id", uuid4().hex)
            self._attempts[key] = stored
            self._insert_count += 1
            return copy.deepcopy(stored)

    # --- Introspection ---

    @property
    def insert_count(self) -> int:
        """Number of successful attempt inserts."""
        with self._lock:
            return self._insert_count
