"""Static metadata describing the classroom quiz service."""

APP_NAME = "Classroom Quiz"
APP_VERSION = "0.1.0"
APP_DESCRIPTION = (
    "Timed quiz sessions for students: load a class quiz, answer and navigate "
    "questions, and submit a scored attempt exactly once."
)
