import os
from enum import Enum
from typing import Final


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Badge(Enum):
    # Enum Member = ("Label", "Icon", minimum score)
    GENIUS = ("Genius", "🧠", 140)
    SUPERIOR = ("Superior", "🏆", 130)
    ABOVE = ("Above Average", "⭐", 115)
    GOOD = ("Good", "👍", 0)

    def __init__(self, label: str, icon: str, threshold: int):
        self.label = label
        self.icon = icon
        self.threshold = threshold

    @property
    def key(self) -> str:
        return self.name.lower()

    @classmethod
    def for_score(cls, score: int) -> "Badge":
        """Returns the highest badge whose threshold the score reaches."""
        for badge in cls:
            if score >= badge.threshold:
                return badge
        return cls.GOOD


class AppConfig:
    # --- App Identity ---
    APP_TITLE = "IQ Test Online"
    SITE_URL = os.getenv("SITE_URL", "http://localhost:8501")

    # --- Supabase ---
    SUPABASE_URL = os.getenv("PUBLIC_SUPABASE_URL", "")
    SUPABASE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    MEDIA_BUCKET: Final[str] = "images"

    # --- Infrastructure Switch ---
    # Falls back to the local backend when no Supabase credentials are set
    USE_SQLITE: bool = _env_flag("USE_SQLITE", not (SUPABASE_URL and SUPABASE_KEY))
    SQLITE_DB_PATH = os.getenv("SQLITE_DB_PATH", "data/iqsite.db")
    MEDIA_ROOT = os.getenv("MEDIA_ROOT", "data/media")
    MEDIA_PUBLIC_URL = os.getenv("MEDIA_PUBLIC_URL", "/media")
    SEED_FILE = os.getenv("SEED_FILE", "data/seed.json")

    # --- Admin API ---
    ADMIN_API_TOKEN = os.getenv("ADMIN_API_TOKEN")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:8501").split(",")

    # --- Scheduled Publishing ---
    SCHEDULED_PUBLISHING_API_URL = os.getenv(
        "SCHEDULED_PUBLISHING_API_URL",
        "http://localhost:8080/api/admin/scheduled-publishing",
    )
    SCHEDULED_PUBLISHING_TOKEN = os.getenv("SCHEDULED_PUBLISHING_TOKEN")
    SCHEDULED_BATCH_LIMIT: Final[int] = 50
    UPCOMING_DEFAULT_LIMIT = 10
    CRON_MAX_RETRIES = 3
    CRON_TIMEOUT_SECONDS = 30.0
    CRON_BACKOFF_SECONDS = 1.0

    # --- Pagination & Caching ---
    LEADERBOARD_PAGE_SIZE = 10
    LEADERBOARD_CACHE_TTL = 10
    LEADERBOARD_RETRIES = 3
    LEADERBOARD_RETRY_BASE_DELAY = 0.5
    CACHE_DEFAULT_TTL = 300
    USERS_PAGE_SIZE = 50
    ARTICLES_PAGE_SIZE = 20
    MEDIA_PAGE_SIZE = 20

    # --- Content Rules ---
    TAG_MAX_LENGTH: Final[int] = 50
    MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    MEDIA_RENAME_ATTEMPTS = 100

    # --- IQ Test ---
    QUESTIONS_FILE = os.getenv("QUESTIONS_FILE", "data/iq_questions.json")
    TEST_TIME_LIMIT_SECONDS = 1500
    GENIUS_SCORE = 140

    # --- Observability ---
    METRICS_PORT = int(os.getenv("METRICS_PORT", "8000"))
