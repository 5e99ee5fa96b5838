"""Application entry point for the classroom quiz service."""

from __future__ import annotations

from classroom_quiz.config import settings
from classroom_quiz.core.quiz_manager import QuizManager
from classroom_quiz.server.api_server import run_api_server
from classroom_quiz.storage.factory import build_gateway
from classroom_quiz.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, pick the storage backend, and serve the API."""
    logger = configure_logging(settings.LOG_LEVEL)
    logger.info("Starting classroom quiz service…")

    gateway = build_gateway(
        settings.STORAGE_BACKEND,
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_KEY,
    )
    quiz_manager = QuizManager(gateway=gateway, tick_interval=settings.TICK_INTERVAL_SECONDS)
    logger.info("Serving quiz API on %s:%s", settings.HOST, settings.PORT)
    run_api_server(
        quiz_manager=quiz_manager,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
