import statistics
import time
from collections.abc import Callable
from datetime import datetime, timedelta

from src.config import AppConfig, Badge
from src.iqtest.domain.models import LeaderboardEntry, LeaderboardStats, TestResultRecord
from src.iqtest.domain.ports import IResultRepository
from src.shared.cache import TTLCache
from src.shared.clock import ensure_utc, utcnow
from src.shared.pagination import Page, paginate
from src.shared.telemetry import Telemetry, measure_time

ANONYMOUS_NAME = "Anonymous User"


def display_name(record: TestResultRecord) -> str:
    if record.name and record.name.strip():
        return record.name.strip()
    if record.user_id:
        return f"User_{record.user_id[-8:]}"
    return ANONYMOUS_NAME


def best_per_player(records: list[TestResultRecord]) -> list[TestResultRecord]:
    """
    One row per player (by email, else user id), keeping the best score.
    Rows with neither identifier cannot be attributed and are left out.
    """
    best: dict[str, TestResultRecord] = {}
    for record in records:
        key = (record.email or "").strip().lower() or (
            f"user:{record.user_id}" if record.user_id else ""
        )
        if not key:
            continue
        current = best.get(key)
        if current is None or record.score > current.score:
            best[key] = record
    return sorted(
        best.values(), key=lambda r: (-r.score, ensure_utc(r.tested_at))
    )


class LeaderboardService:
    def __init__(
        self,
        repo: IResultRepository,
        cache: TTLCache | None = None,
        retries: int = AppConfig.LEADERBOARD_RETRIES,
        base_delay: float = AppConfig.LEADERBOARD_RETRY_BASE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.repo = repo
        self.cache = cache or TTLCache(AppConfig.LEADERBOARD_CACHE_TTL)
        self.retries = max(1, retries)
        self.base_delay = base_delay
        self.sleep = sleep
        self.telemetry = Telemetry("LeaderboardService")

    def _fetch_ranked(self) -> list[TestResultRecord]:
        cached = self.cache.get("ranked")
        if cached is not None:
            return cached

        for attempt in range(1, self.retries + 1):
            try:
                ranked = best_per_player(self.repo.list_results())
                break
            except Exception as e:
                if attempt == self.retries:
                    self.telemetry.log_error("Leaderboard fetch failed", e, attempts=attempt)
                    raise
                delay = self.base_delay * 2 ** (attempt - 1)
                self.telemetry.log_warning(
                    "Leaderboard fetch failed, retrying", attempt=attempt, delay=delay
                )
                self.sleep(delay)

        self.cache.set("ranked", ranked)
        return ranked

    @staticmethod
    def _entry(rank: int, record: TestResultRecord) -> LeaderboardEntry:
        return LeaderboardEntry(
            rank=rank,
            user_id=record.user_id,
            name=display_name(record),
            score=record.score,
            country=record.country,
            badge=Badge.for_score(record.score).key,
            tested_at=record.tested_at,
            duration_seconds=record.duration_seconds,
        )

    def _entries(self) -> list[LeaderboardEntry]:
        return [self._entry(i, r) for i, r in enumerate(self._fetch_ranked(), start=1)]

    @measure_time("leaderboard_page")
    def get_page(
        self, page: int = 1, page_size: int = AppConfig.LEADERBOARD_PAGE_SIZE
    ) -> Page[LeaderboardEntry]:
        return paginate(self._entries(), page, page_size)

    def get_stats(self, now: datetime | None = None) -> LeaderboardStats:
        ranked = self._fetch_ranked()
        if not ranked:
            return LeaderboardStats()

        now = ensure_utc(now) if now else utcnow()
        scores = [r.score for r in ranked]
        total = len(scores)
        recent = sum(1 for r in ranked if ensure_utc(r.tested_at) >= now - timedelta(days=30))

        return LeaderboardStats(
            total_participants=total,
            highest_score=scores[0],
            average_score=round(sum(scores) / total),
            median_score=round(statistics.median(scores)),
            genius_percentage=round(
                sum(1 for s in scores if s >= AppConfig.GENIUS_SCORE) / total * 100, 1
            ),
            top_percentile_score=scores[int(total * 0.1)],
            recent_growth=round(recent / total * 100, 1),
        )

    def get_user_local_ranking(self, user_id: str, radius: int = 5) -> list[LeaderboardEntry]:
        """The player's own row with up to `radius` neighbours either side."""
        entries = self._entries()
        position = next((i for i, e in enumerate(entries) if e.user_id == user_id), None)
        if position is None:
            return []
        return entries[max(0, position - radius) : position + radius + 1]

    def get_recent_top_performers(
        self, days: int = 7, limit: int = 5, now: datetime | None = None
    ) -> list[LeaderboardEntry]:
        now = ensure_utc(now) if now else utcnow()
        since = now - timedelta(days=days)
        return [e for e in self._entries() if ensure_utc(e.tested_at) >= since][:limit]

    def invalidate(self) -> None:
        self.cache.clear()
