from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from src.cms.domain.models import (
    AnonymousPlayer,
    Article,
    ArticleFilters,
    ArticleStatus,
    BehaviorLog,
    ScheduledArticleRef,
    StoredObject,
    UpcomingArticle,
    UserProfile,
)


class IArticleRepository(ABC):
    @abstractmethod
    def get_article(self, article_id: str) -> Article | None:
        pass

    @abstractmethod
    def list_articles(
        self, filters: ArticleFilters, offset: int, limit: int
    ) -> tuple[list[Article], int]:
        """Returns one window of articles (newest first) and the total count."""
        pass

    @abstractmethod
    def list_all(self) -> list[Article]:
        pass

    @abstractmethod
    def slug_exists(self, slug: str, exclude_id: str | None = None) -> bool:
        pass

    @abstractmethod
    def insert_article(self, article: Article) -> Article:
        pass

    @abstractmethod
    def update_article(self, article_id: str, fields: dict[str, Any]) -> Article | None:
        pass

    @abstractmethod
    def update_status(
        self, article_ids: list[str], status: ArticleStatus, now: datetime
    ) -> int:
        """Sets status on many rows. Stamps published_at when publishing."""
        pass

    @abstractmethod
    def delete_articles(self, article_ids: list[str]) -> int:
        pass

    @abstractmethod
    def increment_view_count(self, article_id: str) -> bool:
        pass

    # --- Scheduled Publishing ---

    @abstractmethod
    def find_due_scheduled(self, now: datetime, limit: int) -> list[ScheduledArticleRef]:
        """
        Rows with status 'scheduled' and scheduled_at <= now,
        never more than `limit`.
        """
        pass

    @abstractmethod
    def publish_scheduled(self, article_ids: list[str], now: datetime) -> list[str]:
        """
        Flips the given ids to 'published'. Only rows that are still scheduled
        and due at `now` change. Returns the ids that were updated.
        """
        pass

    @abstractmethod
    def count_scheduled(
        self, due_before: datetime | None = None, due_after: datetime | None = None
    ) -> int:
        pass

    @abstractmethod
    def list_upcoming_scheduled(
        self, now: datetime, limit: int
    ) -> list[UpcomingArticle]:
        pass


class IBehaviorLogRepository(ABC):
    @abstractmethod
    def append(self, log: BehaviorLog) -> None:
        pass

    @abstractmethod
    def list_logs(self) -> list[BehaviorLog]:
        """All events, oldest first."""
        pass


class IUserDirectory(ABC):
    @abstractmethod
    def list_profiles(self) -> list[UserProfile]:
        pass

    @abstractmethod
    def list_anonymous_players(self) -> list[AnonymousPlayer]:
        pass


class IMediaStorage(ABC):
    @abstractmethod
    def list_objects(self) -> list[StoredObject]:
        """Root objects plus one level of folders."""
        pass

    @abstractmethod
    def upload(
        self, path: str, content: bytes, content_type: str, upsert: bool = False
    ) -> StoredObject:
        """Raises StorageConflictError when the path exists and upsert is False."""
        pass

    @abstractmethod
    def remove(self, paths: list[str]) -> None:
        pass

    @abstractmethod
    def copy(self, source: str, destination: str) -> None:
        pass

    @abstractmethod
    def public_url(self, path: str) -> str:
        pass
