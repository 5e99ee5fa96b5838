import os

from dotenv import load_dotenv

from classroom_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from classroom_quiz.constants.quiz_constants import TICK_INTERVAL_SECONDS

load_dotenv()


class Settings:
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY")
    STORAGE_BACKEND = os.getenv("QUIZ_STORAGE_BACKEND", "memory").lower()
    HOST = os.getenv("QUIZ_HOST", DEFAULT_HOST)
    PORT = int(os.getenv("QUIZ_PORT", str(DEFAULT_PORT)))
    LOG_LEVEL = os.getenv("QUIZ_LOG_LEVEL", "INFO").upper()
    TICK_INTERVAL_SECONDS = float(os.getenv("QUIZ_TICK_INTERVAL_SECONDS", str(TICK_INTERVAL_SECONDS)))

settings = Settings()
