import json
import os
from datetime import timedelta

from src.cms.adapters.sqlite_repository import SQLiteArticleRepository, SQLiteUserDirectory
from src.cms.domain.models import Article, UserProfile
from src.iqtest.adapters.sqlite_repository import SQLiteResultRepository
from src.iqtest.domain.models import TestResultRecord
from src.shared.clock import utcnow
from src.shared.telemetry import Telemetry

# --- Seeding Strategy ---
# Only the local SQLite backend is ever seeded. A Supabase project is
# provisioned through its own migrations and is never touched from here.
# Timestamps in the seed file are offsets ("*_days_ago", "*_in_hours") so the
# demo always has something overdue, something upcoming and recent results.
# ---------------------------------


class DataSeeder:
    """
    Responsible for populating an empty local database with demo data.
    """

    def __init__(
        self,
        articles: SQLiteArticleRepository,
        users: SQLiteUserDirectory,
        results: SQLiteResultRepository,
    ) -> None:
        self.articles = articles
        self.users = users
        self.results = results
        self.telemetry = Telemetry("DataSeeder")

    def seed_if_empty(self, seed_file: str = "data/seed.json") -> int:
        """Returns the number of rows inserted (0 when nothing was done)."""
        if not self.articles.is_empty() or not self.results.is_empty():
            return 0

        if not os.path.exists(seed_file):
            self.telemetry.log_warning("Seed file NOT found", path=seed_file)
            return 0

        self.telemetry.log_info("DB appears empty. Seeding demo data...")
        try:
            with open(seed_file, encoding="utf-8") as f:
                data = json.load(f)
            inserted = self._seed(data)
        except (OSError, ValueError) as e:
            self.telemetry.log_error("Auto-seeding failed", e, path=seed_file)
            raise

        self.telemetry.log_info(f"Seeded {inserted} rows.")
        return inserted

    def _seed(self, data: dict) -> int:
        now = utcnow()
        count = 0

        for raw in data.get("user_profiles", []):
            created = now - timedelta(days=raw.pop("created_days_ago", 0))
            self.users.save_profile(UserProfile(created_at=created, **raw))
            count += 1

        for raw in data.get("articles", []):
            created = now - timedelta(days=raw.pop("created_days_ago", 0))
            if "scheduled_in_hours" in raw:
                raw["scheduled_at"] = now + timedelta(hours=raw.pop("scheduled_in_hours"))
            if raw.get("status") == "published":
                raw["published_at"] = created
            self.articles.insert_article(
                Article(created_at=created, updated_at=created, **raw)
            )
            count += 1

        for raw in data.get("results", []):
            tested = now - timedelta(days=raw.pop("tested_days_ago", 0))
            self.results.save_result(TestResultRecord(tested_at=tested, **raw))
            count += 1

        return count
