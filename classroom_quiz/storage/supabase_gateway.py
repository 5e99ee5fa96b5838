"""Supabase-backed storage for quizzes, questions, and attempts."""

from __future__ import annotations

import logging

from postgrest.exceptions import APIError
import supabase

from classroom_quiz.core.errors import DuplicateAttemptError, StorageError
from classroom_quiz.storage.base import Row

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION = "23505"


def create_supabase_client(url: str | None, key: str | None) -> supabase.Client:
    if not url or not key:
        raise StorageError("SUPABASE_URL and SUPABASE_KEY must be configured.")
    return supabase.create_client(supabase_url=url, supabase_key=key)


class SupabaseQuizGateway:
    """Reads quiz tables and writes attempts through the Supabase REST API.

    The ``quiz_attempts`` table carries a unique constraint on
    ``(quiz_id, student_id)``; a violation surfaces as
    ``DuplicateAttemptError``.
    """

    def __init__(self, client: supabase.Client) -> None:
        self._client = client

    def fetch_quiz(self, quiz_id: str) -> Row | None:
        rows = self._run(
            self._client.table("quizzes").select("*").eq("id", quiz_id).limit(1)
        )
        return rows[0] if rows else None

    def fetch_questions(self, quiz_id: str) -> list[Row]:
        return self._run(
            self._client.table("quiz_questions")
            .select("*")
            .eq("quiz_id", quiz_id)
            .order("created_at")
        )

    def fetch_student_class(self, student_id: str) -> str | None:
        rows = self._run(
            self._client.table("student_enrollments")
            .select("class_id")
            .eq("student_id", student_id)
            .limit(1)
        )
        return rows[0]["class_id"] if rows else None

    def fetch_active_quizzes(self, class_id: str) -> list[Row]:
        return self._run(
            self._client.table("quizzes")
            .select("*")
            .eq("class_id", class_id)
            .eq("active", True)
            .order("created_at", desc=True)
        )

    def fetch_attempts(self, student_id: str) -> list[Row]:
        return self._run(
            self._client.table("quiz_attempts")
            .select("*")
            .eq("student_id", student_id)
            .order("completed_at", desc=True)
        )

    def insert_attempt(self, row: Row) -> Row:
        try:
            response = self._client.table("quiz_attempts").insert([row]).execute()
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise DuplicateAttemptError(row["quiz_id"], row["student_id"]) from exc
            logger.error("Saving attempt failed: %s", exc.message)
            raise StorageError(exc.message or "Saving attempt failed.") from exc
        if not response.data:
            raise StorageError("Saving attempt returned no row.")
        return response.data[0]

    @staticmethod
    def _run(query) -> list[Row]:
        try:
            return query.execute().data or []
        except APIError as exc:
            logger.error("Supabase query failed: %s", exc.message)
            raise StorageError(exc.message or "Supabase query failed.") from exc
