from datetime import datetime

from src.cms.domain.models import (
    PublishingHealth,
    PublishResult,
    ScheduledStats,
    UpcomingArticle,
)
from src.cms.domain.ports import IArticleRepository
from src.config import AppConfig
from src.shared.clock import ensure_utc, utcnow
from src.shared.telemetry import ARTICLES_PUBLISHED, Telemetry, measure_time


class ScheduledPublishingService:
    """
    Flips due articles from 'scheduled' to 'published'.

    Invoked once per minute by the cron job through the admin API. Each call
    handles at most `batch_limit` rows; any backlog drains on later runs.
    """

    def __init__(
        self,
        repo: IArticleRepository,
        batch_limit: int = AppConfig.SCHEDULED_BATCH_LIMIT,
    ) -> None:
        self.repo = repo
        self.batch_limit = batch_limit
        self.telemetry = Telemetry("ScheduledPublishingService")

    @measure_time("process_scheduled_articles")
    def process_scheduled_articles(self, now: datetime | None = None) -> PublishResult:
        now = ensure_utc(now) if now else utcnow()

        try:
            due = self.repo.find_due_scheduled(now, self.batch_limit)
        except Exception as e:
            self.telemetry.log_error("Fetching scheduled articles failed", e)
            return PublishResult(errors=[f"Fetch error: {e}"])

        if not due:
            self.telemetry.log_info("No scheduled articles due")
            return PublishResult()

        # Guard against a repository that ignores the limit
        due = due[: self.batch_limit]
        self.telemetry.log_info(
            f"Publishing {len(due)} scheduled article(s)",
            ids=[a.id for a in due],
        )

        try:
            published_ids = self.repo.publish_scheduled([a.id for a in due], now)
        except Exception as e:
            self.telemetry.log_error("Publishing scheduled articles failed", e)
            return PublishResult(errors=[f"Update error: {e}"])

        ARTICLES_PUBLISHED.inc(len(published_ids))
        titles = {a.id: a.title for a in due}
        for article_id in published_ids:
            self.telemetry.log_info(f"✅ Published: {titles.get(article_id, article_id)}")

        return PublishResult(published=len(published_ids), articles=published_ids)

    def get_scheduled_stats(self, now: datetime | None = None) -> ScheduledStats:
        now = ensure_utc(now) if now else utcnow()
        return ScheduledStats(
            total=self.repo.count_scheduled(),
            upcoming=self.repo.count_scheduled(due_after=now),
            overdue=self.repo.count_scheduled(due_before=now),
        )

    def get_upcoming_scheduled_articles(
        self, limit: int = AppConfig.UPCOMING_DEFAULT_LIMIT, now: datetime | None = None
    ) -> list[UpcomingArticle]:
        now = ensure_utc(now) if now else utcnow()
        return self.repo.list_upcoming_scheduled(now, max(1, limit))

    def health_check(self, now: datetime | None = None) -> PublishingHealth:
        try:
            stats = self.get_scheduled_stats(now)
        except Exception as e:
            self.telemetry.log_error("Scheduled publishing health check failed", e)
            return PublishingHealth(status="error", message=f"Health check failed: {e}")

        if stats.overdue > 0:
            return PublishingHealth(
                status="warning",
                message=f"{stats.overdue} article(s) are overdue for publishing",
                stats=stats,
            )
        return PublishingHealth(
            status="healthy", message="Scheduled publishing is up to date", stats=stats
        )
