import json
import sqlite3
import uuid
from datetime import datetime
from typing import Any

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
from src.shared.db_manager import DatabaseManager
from src.shared.telemetry import Telemetry, measure_time

ARTICLE_COLUMNS = (
    "id", "title", "slug", "content", "excerpt", "status", "author_id",
    "categories", "tags", "featured_image", "meta_title", "meta_description",
    "focus_keyword", "view_count", "reading_time", "scheduled_at",
    "published_at", "created_at", "updated_at",
)
JSON_COLUMNS = {"categories", "tags"}
DATE_COLUMNS = {"scheduled_at", "published_at", "created_at", "updated_at"}


def _to_db(column: str, value: Any) -> Any:
    if value is None:
        return None
    if column in JSON_COLUMNS:
        return json.dumps(value)
    if column in DATE_COLUMNS and isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, ArticleStatus):
        return value.value
    return value


def _row_to_article(row: sqlite3.Row) -> Article:
    data = dict(row)
    for column in JSON_COLUMNS:
        data[column] = json.loads(data[column] or "[]")
    for column in DATE_COLUMNS:
        data[column] = from_iso(data[column])
    return Article.model_validate(data)


def _placeholders(values: list[Any]) -> str:
    return ",".join("?" for _ in values)


class SQLiteArticleRepository(IArticleRepository):
    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteArticleRepository")
        self.db_manager = db_manager

    def _get_connection(self) -> sqlite3.Connection:
        return self.db_manager.get_connection()

    def is_empty(self) -> bool:
        """Helper for the Seeder."""
        row = self._get_connection().execute("SELECT count(*) FROM articles").fetchone()
        return (row[0] if row else 0) == 0

    def get_article(self, article_id: str) -> Article | None:
        row = (
            self._get_connection()
            .execute("SELECT * FROM articles WHERE id = ?", (article_id,))
            .fetchone()
        )
        return _row_to_article(row) if row else None

    @measure_time("db_list_articles")
    def list_articles(
        self, filters: ArticleFilters, offset: int, limit: int
    ) -> tuple[list[Article], int]:
        clauses: list[str] = []
        params: list[Any] = []
        if filters.status:
            clauses.append("status = ?")
            params.append(filters.status.value)
        if filters.author_id:
            clauses.append("author_id = ?")
            params.append(filters.author_id)
        if filters.search:
            clauses.append("(title LIKE ? OR content LIKE ?)")
            term = f"%{filters.search}%"
            params.extend([term, term])
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        conn = self._get_connection()
        total = conn.execute(f"SELECT count(*) FROM articles {where}", params).fetchone()[0]
        rows = conn.execute(
            f"SELECT * FROM articles {where} ORDER BY created_at DESC LIMIT ? OFFSET ?",
            [*params, limit, offset],
        ).fetchall()
        return [_row_to_article(r) for r in rows], total

    def list_all(self) -> list[Article]:
        rows = self._get_connection().execute("SELECT * FROM articles").fetchall()
        return [_row_to_article(r) for r in rows]

    def slug_exists(self, slug: str, exclude_id: str | None = None) -> bool:
        sql = "SELECT 1 FROM articles WHERE slug = ?"
        params: list[Any] = [slug]
        if exclude_id:
            sql += " AND id != ?"
            params.append(exclude_id)
        return self._get_connection().execute(sql, params).fetchone() is not None

    def insert_article(self, article: Article) -> Article:
        data = article.model_dump()
        if not data.get("id"):
            data["id"] = str(uuid.uuid4())
        conn = self._get_connection()
        conn.execute(
            f"INSERT INTO articles ({','.join(ARTICLE_COLUMNS)}) "
            f"VALUES ({_placeholders(list(ARTICLE_COLUMNS))})",
            [_to_db(c, data.get(c)) for c in ARTICLE_COLUMNS],
        )
        conn.commit()
        return Article.model_validate(data)

    def update_article(self, article_id: str, fields: dict[str, Any]) -> Article | None:
        updates = {k: v for k, v in fields.items() if k in ARTICLE_COLUMNS and k != "id"}
        if updates:
            assignments = ", ".join(f"{column} = ?" for column in updates)
            conn = self._get_connection()
            conn.execute(
                f"UPDATE articles SET {assignments} WHERE id = ?",
                [*(_to_db(c, v) for c, v in updates.items()), article_id],
            )
            conn.commit()
        return self.get_article(article_id)

    def update_status(
        self, article_ids: list[str], status: ArticleStatus, now: datetime
    ) -> int:
        if not article_ids:
            return 0
        stamp = to_iso(now)
        conn = self._get_connection()
        cursor = conn.execute(
            f"""
            UPDATE articles
            SET status = ?,
                updated_at = ?,
                published_at = CASE
                    WHEN ? = 'published' AND published_at IS NULL THEN ?
                    ELSE published_at
                END
            WHERE id IN ({_placeholders(article_ids)})
            """,
            [status.value, stamp, status.value, stamp, *article_ids],
        )
        conn.commit()
        return cursor.rowcount

    def delete_articles(self, article_ids: list[str]) -> int:
        if not article_ids:
            return 0
        conn = self._get_connection()
        cursor = conn.execute(
            f"DELETE FROM articles WHERE id IN ({_placeholders(article_ids)})",
            article_ids,
        )
        conn.commit()
        return cursor.rowcount

    def increment_view_count(self, article_id: str) -> bool:
        conn = self._get_connection()
        cursor = conn.execute(
            "UPDATE articles SET view_count = view_count + 1 WHERE id = ?",
            (article_id,),
        )
        conn.commit()
        return cursor.rowcount > 0

    # --- Scheduled Publishing ---

    @measure_time("db_find_due_scheduled")
    def find_due_scheduled(self, now: datetime, limit: int) -> list[ScheduledArticleRef]:
        rows = (
            self._get_connection()
            .execute(
                """
                SELECT id, title, scheduled_at
                FROM articles
                WHERE status = 'scheduled'
                  AND scheduled_at IS NOT NULL
                  AND scheduled_at <= ?
                ORDER BY scheduled_at ASC
                LIMIT ?
                """,
                (to_iso(now), limit),
            )
            .fetchall()
        )
        return [
            ScheduledArticleRef(r["id"], r["title"], from_iso(r["scheduled_at"]))
            for r in rows
        ]

    @measure_time("db_publish_scheduled")
    def publish_scheduled(self, article_ids: list[str], now: datetime) -> list[str]:
        if not article_ids:
            return []
        stamp = to_iso(now)
        due_filter = (
            f"id IN ({_placeholders(article_ids)}) "
            "AND status = 'scheduled' AND scheduled_at IS NOT NULL AND scheduled_at <= ?"
        )
        conn = self._get_connection()
        try:
            eligible = [
                r["id"]
                for r in conn.execute(
                    f"SELECT id FROM articles WHERE {due_filter}", [*article_ids, stamp]
                )
            ]
            conn.execute(
                "UPDATE articles SET status = 'published', published_at = ?, "
                f"updated_at = ? WHERE {due_filter}",
                [stamp, stamp, *article_ids, stamp],
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        return eligible

    def count_scheduled(
        self, due_before: datetime | None = None, due_after: datetime | None = None
    ) -> int:
        sql = "SELECT count(*) FROM articles WHERE status = 'scheduled'"
        params: list[Any] = []
        if due_before is not None:
            sql += " AND scheduled_at IS NOT NULL AND scheduled_at <= ?"
            params.append(to_iso(due_before))
        if due_after is not None:
            sql += " AND scheduled_at IS NOT NULL AND scheduled_at > ?"
            params.append(to_iso(due_after))
        return self._get_connection().execute(sql, params).fetchone()[0]

    def list_upcoming_scheduled(self, now: datetime, limit: int) -> list[UpcomingArticle]:
        rows = (
            self._get_connection()
            .execute(
                """
                SELECT a.id, a.title, a.scheduled_at, p.full_name
                FROM articles a
                LEFT JOIN user_profiles p ON p.id = a.author_id
                WHERE a.status = 'scheduled' AND a.scheduled_at > ?
                ORDER BY a.scheduled_at ASC
                LIMIT ?
                """,
                (to_iso(now), limit),
            )
            .fetchall()
        )
        return [
            UpcomingArticle(
                id=r["id"],
                title=r["title"],
                scheduled_at=from_iso(r["scheduled_at"]),
                author_name=r["full_name"] or "Unknown",
            )
            for r in rows
        ]


class SQLiteBehaviorLogRepository(IBehaviorLogRepository):
    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteBehaviorLogRepository")
        self.db_manager = db_manager

    def append(self, log: BehaviorLog) -> None:
        conn = self.db_manager.get_connection()
        conn.execute(
            "INSERT INTO test_behavior_logs "
            "(session_id, event_type, question_number, timestamp, event_data) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                log.session_id,
                log.event_type.value,
                log.question_number,
                to_iso(log.timestamp),
                json.dumps(log.event_data),
            ),
        )
        conn.commit()

    @measure_time("db_list_behavior_logs")
    def list_logs(self) -> list[BehaviorLog]:
        rows = (
            self.db_manager.get_connection()
            .execute("SELECT * FROM test_behavior_logs ORDER BY timestamp ASC, id ASC")
            .fetchall()
        )
        return [
            BehaviorLog(
                id=r["id"],
                session_id=r["session_id"],
                event_type=r["event_type"],
                question_number=r["question_number"],
                timestamp=from_iso(r["timestamp"]),
                event_data=json.loads(r["event_data"] or "{}"),
            )
            for r in rows
        ]


class SQLiteUserDirectory(IUserDirectory):
    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteUserDirectory")
        self.db_manager = db_manager

    def save_profile(self, profile: UserProfile) -> None:
        """Used by the seeder and tests; sign-up itself lives in Supabase Auth."""
        conn = self.db_manager.get_connection()
        conn.execute(
            "INSERT OR REPLACE INTO user_profiles "
            "(id, full_name, email, age, country, gender, role, is_verified, "
            "created_at, last_login) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                profile.id,
                profile.full_name,
                profile.email,
                profile.age,
                profile.country,
                profile.gender,
                profile.role,
                int(profile.is_verified),
                to_iso(profile.created_at),
                to_iso(profile.last_login) if profile.last_login else None,
            ),
        )
        conn.commit()

    def list_profiles(self) -> list[UserProfile]:
        rows = self.db_manager.get_connection().execute("SELECT * FROM user_profiles")
        profiles = []
        for r in rows.fetchall():
            data = dict(r)
            data["is_verified"] = bool(data["is_verified"])
            data["created_at"] = from_iso(data["created_at"])
            data["last_login"] = from_iso(data["last_login"])
            profiles.append(UserProfile.model_validate(data))
        return profiles

    def list_anonymous_players(self) -> list[AnonymousPlayer]:
        rows = self.db_manager.get_connection().execute("SELECT * FROM anonymous_players")
        players = []
        for r in rows.fetchall():
            data = dict(r)
            data["test_result"] = json.loads(data["test_result"] or "{}")
            data["created_at"] = from_iso(data["created_at"])
            players.append(AnonymousPlayer.model_validate(data))
        return players
