"""Select the storage backend named in the settings."""

from __future__ import annotations

import logging

from classroom_quiz.storage.base import QuizGateway
from classroom_quiz.storage.memory_gateway import InMemoryQuizGateway
from classroom_quiz.storage.supabase_gateway import SupabaseQuizGateway, create_supabase_client

logger = logging.getLogger(__name__)

MEMORY_BACKEND = "memory"
SUPABASE_BACKEND = "supabase"


def build_gateway(backend: str, supabase_url: str | None = None, supabase_key: str | None = None) -> QuizGateway:
    if backend == SUPABASE_BACKEND:
        logger.info("Using Supabase storage at %s", supabase_url)
        return SupabaseQuizGateway(create_supabase_client(supabase_url, supabase_key))
    if backend == MEMORY_BACKEND:
        logger.info("Using in-memory storage; attempts are lost on restart")
        return InMemoryQuizGateway()
    raise ValueError(f"Unknown storage backend '{backend}'.")
