"""Quiz-related constants shared across the core and server layers."""

TICK_INTERVAL_SECONDS: float = 1.0
SECONDS_PER_MINUTE: int = 60
DEFAULT_QUESTION_POINTS: int = 1
RECENT_ATTEMPTS_LIMIT: int = 5
