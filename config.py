import os
import json
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    TELEGRAM_TOKEN = os.getenv("TELEGRAM_TOKEN")
    REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    SESSION_TTL = int(os.getenv("SESSION_TTL", "3600"))
    TIMEZONE = os.getenv("TIMEZONE", "Asia/Shanghai")

    # Remote question / validation service
    QUIZ_API_BASE_URL = os.getenv("QUIZ_API_BASE_URL", "http://localhost:8788/api")
    QUIZ_API_TIMEOUT = float(os.getenv("QUIZ_API_TIMEOUT", "10"))

    # Quiz rules
    MAX_QUESTIONS_PER_QUIZ = 10
    QUESTIONS_PER_QUIZ = int(os.getenv("QUESTIONS_PER_QUIZ", "10"))
    RANDOMIZE_QUESTIONS = _env_bool("RANDOMIZE_QUESTIONS", "true")
    PASS_SCORE = int(os.getenv("PASS_SCORE", "90"))
    QUIZ_CATEGORIES = [
        c.strip() for c in os.getenv("QUIZ_CATEGORIES", "safety,violation").split(",") if c.strip()
    ]

    # Results sheet (optional)
    SHEET_ID = os.getenv("SHEET_ID")
    GOOGLE_CREDENTIALS = None
    _credentials_value = os.getenv("GOOGLE_CREDENTIALS")
    if _credentials_value:
        try:
            GOOGLE_CREDENTIALS = json.loads(_credentials_value)
        except json.JSONDecodeError:
            # Path to a service-account file
            credentials_path = os.path.abspath(_credentials_value)
            if os.path.exists(credentials_path):
                with open(credentials_path, "r", encoding="utf-8") as f:
                    GOOGLE_CREDENTIALS = json.load(f)
            else:
                raise ValueError(
                    "GOOGLE_CREDENTIALS must be valid JSON or a path to a JSON file"
                )

    @classmethod
    def validate(cls):
        if not cls.TELEGRAM_TOKEN:
            raise ValueError("TELEGRAM_TOKEN is not set")
        if not 0 < cls.QUESTIONS_PER_QUIZ <= cls.MAX_QUESTIONS_PER_QUIZ:
            raise ValueError(f"QUESTIONS_PER_QUIZ must be between 1 and {cls.MAX_QUESTIONS_PER_QUIZ}")
        if cls.SESSION_TTL <= 0:
            raise ValueError("SESSION_TTL must be positive")
        if not cls.QUIZ_CATEGORIES:
            raise ValueError("QUIZ_CATEGORIES is empty")
