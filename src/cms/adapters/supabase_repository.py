from datetime import datetime
from typing import Any, cast

from postgrest.types import CountMethod

from src.cms.domain.models import (
    AnonymousPlayer,
    Article,
    ArticleFilters,
    ArticleStatus,
    BehaviorLog,
    ScheduledArticleRef,
    UpcomingArticle,
    UserProfile,
)
from src.cms.domain.ports import (
    IArticleRepository,
    IBehaviorLogRepository,
    IUserDirectory,
)
from src.shared.clock import from_iso, to_iso
from src.shared.telemetry import Telemetry, measure_time
from supabase import Client, create_client


def create_supabase_client(url: str, key: str, telemetry: Telemetry) -> Client:
    try:
        return create_client(url, key)
    except Exception as e:
        telemetry.log_error("Failed to initialize Supabase client", e)
        raise


def _rows(response: Any) -> list[dict[str, Any]]:
    return cast(list[dict[str, Any]], response.data or [])


def _serialize(fields: dict[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, datetime):
            payload[key] = to_iso(value)
        elif isinstance(value, ArticleStatus):
            payload[key] = value.value
        else:
            payload[key] = value
    return payload


class SupabaseArticleRepository(IArticleRepository):
    TABLE = "articles"

    def __init__(self, client: Client) -> None:
        self.telemetry = Telemetry("SupabaseArticleRepository")
        self.client = client

    def _table(self) -> Any:
        return self.client.table(self.TABLE)

    def get_article(self, article_id: str) -> Article | None:
        try:
            data = _rows(self._table().select("*").eq("id", article_id).limit(1).execute())
            return Article.model_validate(data[0]) if data else None
        except Exception as e:
            self.telemetry.log_error(f"get_article failed for {article_id}", e)
            raise

    @measure_time("sb_list_articles")
    def list_articles(
        self, filters: ArticleFilters, offset: int, limit: int
    ) -> tuple[list[Article], int]:
        try:
            query = self._table().select("*", count=cast(CountMethod, "exact"))
            if filters.status:
                query = query.eq("status", filters.status.value)
            if filters.author_id:
                query = query.eq("author_id", filters.author_id)
            if filters.search:
                term = filters.search.replace(",", " ")
                query = query.or_(f"title.ilike.%{term}%,content.ilike.%{term}%")
            response = (
                query.order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
            articles = [Article.model_validate(r) for r in _rows(response)]
            return articles, response.count or 0
        except Exception as e:
            self.telemetry.log_error("list_articles failed", e)
            raise

    def list_all(self) -> list[Article]:
        try:
            return [Article.model_validate(r) for r in _rows(self._table().select("*").execute())]
        except Exception as e:
            self.telemetry.log_error("list_all failed", e)
            raise

    def slug_exists(self, slug: str, exclude_id: str | None = None) -> bool:
        query = self._table().select("id").eq("slug", slug)
        if exclude_id:
            query = query.neq("id", exclude_id)
        return bool(_rows(query.limit(1).execute()))

    def insert_article(self, article: Article) -> Article:
        payload = article.model_dump(mode="json")
        try:
            data = _rows(self._table().insert(payload).execute())
            return Article.model_validate(data[0]) if data else article
        except Exception as e:
            self.telemetry.log_error("insert_article failed", e, slug=article.slug)
            raise

    def update_article(self, article_id: str, fields: dict[str, Any]) -> Article | None:
        try:
            data = _rows(
                self._table().update(_serialize(fields)).eq("id", article_id).execute()
            )
            return Article.model_validate(data[0]) if data else None
        except Exception as e:
            self.telemetry.log_error(f"update_article failed for {article_id}", e)
            raise

    def update_status(
        self, article_ids: list[str], status: ArticleStatus, now: datetime
    ) -> int:
        if not article_ids:
            return 0
        payload: dict[str, Any] = {"status": status.value, "updated_at": to_iso(now)}
        try:
            data = _rows(self._table().update(payload).in_("id", article_ids).execute())
            if status == ArticleStatus.PUBLISHED:
                # First publish only; re-publishing keeps the original date
                self._table().update({"published_at": to_iso(now)}).in_(
                    "id", article_ids
                ).is_("published_at", "null").execute()
            return len(data)
        except Exception as e:
            self.telemetry.log_error("update_status failed", e, status=status.value)
            raise

    def delete_articles(self, article_ids: list[str]) -> int:
        if not article_ids:
            return 0
        try:
            return len(_rows(self._table().delete().in_("id", article_ids).execute()))
        except Exception as e:
            self.telemetry.log_error("delete_articles failed", e)
            raise

    def increment_view_count(self, article_id: str) -> bool:
        try:
            self.client.rpc("track_article_view", {"article_id": article_id}).execute()
            return True
        except Exception as e:
            self.telemetry.log_error(f"track_article_view failed for {article_id}", e)
            return False

    # --- Scheduled Publishing ---

    @measure_time("sb_find_due_scheduled")
    def find_due_scheduled(self, now: datetime, limit: int) -> list[ScheduledArticleRef]:
        response = (
            self._table()
            .select("id, title, scheduled_at")
            .eq("status", ArticleStatus.SCHEDULED.value)
            .not_.is_("scheduled_at", "null")
            .lte("scheduled_at", to_iso(now))
            .order("scheduled_at")
            .limit(limit)
            .execute()
        )
        return [
            ScheduledArticleRef(r["id"], r["title"], from_iso(r.get("scheduled_at")))
            for r in _rows(response)
        ]

    @measure_time("sb_publish_scheduled")
    def publish_scheduled(self, article_ids: list[str], now: datetime) -> list[str]:
        if not article_ids:
            return []
        stamp = to_iso(now)
        response = (
            self._table()
            .update({"status": "published", "published_at": stamp, "updated_at": stamp})
            .in_("id", article_ids)
            .eq("status", ArticleStatus.SCHEDULED.value)
            .lte("scheduled_at", stamp)
            .execute()
        )
        return [r["id"] for r in _rows(response)]

    def count_scheduled(
        self, due_before: datetime | None = None, due_after: datetime | None = None
    ) -> int:
        query = (
            self._table()
            .select("id", count=cast(CountMethod, "exact"))
            .eq("status", ArticleStatus.SCHEDULED.value)
        )
        if due_before is not None:
            query = query.lte("scheduled_at", to_iso(due_before))
        if due_after is not None:
            query = query.gt("scheduled_at", to_iso(due_after))
        return query.execute().count or 0

    def list_upcoming_scheduled(self, now: datetime, limit: int) -> list[UpcomingArticle]:
        rows = _rows(
            self._table()
            .select("id, title, scheduled_at, author_id")
            .eq("status", ArticleStatus.SCHEDULED.value)
            .gt("scheduled_at", to_iso(now))
            .order("scheduled_at")
            .limit(limit)
            .execute()
        )
        author_ids = sorted({r["author_id"] for r in rows if r.get("author_id")})
        names: dict[str, str] = {}
        if author_ids:
            profiles = _rows(
                self.client.table("user_profiles")
                .select("id, full_name")
                .in_("id", author_ids)
                .execute()
            )
            names = {p["id"]: p["full_name"] for p in profiles if p.get("full_name")}
        return [
            UpcomingArticle(
                id=r["id"],
                title=r["title"],
                scheduled_at=from_iso(r["scheduled_at"]),
                author_name=names.get(r.get("author_id") or "", "Unknown"),
            )
            for r in rows
        ]


class SupabaseBehaviorLogRepository(IBehaviorLogRepository):
    TABLE = "test_behavior_logs"

    def __init__(self, client: Client) -> None:
        self.telemetry = Telemetry("SupabaseBehaviorLogRepository")
        self.client = client

    def append(self, log: BehaviorLog) -> None:
        try:
            self.client.table(self.TABLE).insert(
                log.model_dump(mode="json", exclude={"id"})
            ).execute()
        except Exception as e:
            self.telemetry.log_error("behavior log insert failed", e, session=log.session_id)
            raise

    @measure_time("sb_list_behavior_logs")
    def list_logs(self) -> list[BehaviorLog]:
        try:
            response = (
                self.client.table(self.TABLE)
                .select("*")
                .order("timestamp")
                .execute()
            )
            return [BehaviorLog.model_validate(r) for r in _rows(response)]
        except Exception as e:
            self.telemetry.log_error("list_logs failed", e)
            raise


class SupabaseUserDirectory(IUserDirectory):
    def __init__(self, client: Client) -> None:
        self.telemetry = Telemetry("SupabaseUserDirectory")
        self.client = client

    def list_profiles(self) -> list[UserProfile]:
        try:
            response = self.client.table("user_profiles").select("*").execute()
            return [UserProfile.model_validate(r) for r in _rows(response)]
        except Exception as e:
            self.telemetry.log_error("list_profiles failed", e)
            raise

    def list_anonymous_players(self) -> list[AnonymousPlayer]:
        try:
            response = self.client.table("anonymous_players").select("*").execute()
            return [AnonymousPlayer.model_validate(r) for r in _rows(response)]
        except Exception as e:
            self.telemetry.log_error("list_anonymous_players failed", e)
            raise
