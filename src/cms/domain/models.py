from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


# --- Enums ---
class ArticleStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"
    SCHEDULED = "scheduled"


class BehaviorEvent(str, Enum):
    START = "start"
    COMPLETE = "complete"
    ABANDON = "abandon"


MediaType = Literal["all", "image", "video", "document"]


# --- Entities ---
class Article(BaseModel):
    id: str
    title: str
    slug: str
    content: str
    excerpt: str | None = None
    status: ArticleStatus = ArticleStatus.DRAFT
    author_id: str | None = None
    categories: list[str] = []
    tags: list[str] = []
    featured_image: str | None = None

    # SEO metadata
    meta_title: str | None = None
    meta_description: str | None = None
    focus_keyword: str | None = None

    view_count: int = 0
    reading_time: int = 0

    scheduled_at: datetime | None = None
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ArticleDraft(BaseModel):
    """Editor payload for creating or updating an article."""

    title: str | None = None
    slug: str | None = None
    content: str | None = None
    excerpt: str | None = None
    status: ArticleStatus | None = None
    author_id: str | None = None
    categories: list[str] | None = None
    tags: list[str] | None = None
    featured_image: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    focus_keyword: str | None = None
    scheduled_at: datetime | None = None


class ArticleFilters(BaseModel):
    status: ArticleStatus | None = None
    search: str | None = None
    author_id: str | None = None


class ArticleStats(BaseModel):
    total: int = 0
    published: int = 0
    draft: int = 0
    archived: int = 0
    scheduled: int = 0
    total_views: int = 0
    avg_reading_time: int = 0
    recent_articles: int = 0


# --- Scheduled Publishing DTOs ---
@dataclass
class ScheduledArticleRef:
    """Minimal projection used by the publishing batch."""

    id: str
    title: str
    scheduled_at: datetime | None


class UpcomingArticle(BaseModel):
    id: str
    title: str
    scheduled_at: datetime
    author_name: str = "Unknown"


class PublishResult(BaseModel):
    published: int = 0
    errors: list[str] = []
    articles: list[str] = []


class ScheduledStats(BaseModel):
    total: int = 0
    upcoming: int = 0
    overdue: int = 0


class PublishingHealth(BaseModel):
    status: Literal["healthy", "warning", "error"]
    message: str
    stats: ScheduledStats | None = None


# --- Users ---
class UserProfile(BaseModel):
    id: str
    full_name: str | None = None
    email: str | None = None
    age: int | None = None
    country: str | None = None
    gender: str | None = None
    role: Literal["user", "admin"] = "user"
    is_verified: bool = False
    created_at: datetime
    last_login: datetime | None = None


class AnonymousPlayer(BaseModel):
    id: str | None = None
    name: str
    email: str | None = None
    age: int | None = Field(default=None, ge=0, le=120)
    country: str | None = None
    gender: str | None = None
    test_result: dict[str, Any] = {}
    test_score: int | None = None
    test_duration: int | None = None
    created_at: datetime | None = None


class UserRow(BaseModel):
    """Unified listing row for registered and anonymous users."""

    id: str
    full_name: str | None
    email: str | None
    age: int | None = None
    country: str | None = None
    role: str = "user"
    is_verified: bool = False
    user_type: Literal["registered", "anonymous"]
    created_at: datetime
    test_score: int | None = None


# --- Media ---
class StoredObject(BaseModel):
    """Raw object as reported by a storage backend."""

    path: str
    size: int = 0
    mimetype: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class MediaFile(BaseModel):
    id: str
    name: str
    size: int
    type: str
    url: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class MediaListing(BaseModel):
    files: list[MediaFile]
    total: int
    page: int
    limit: int
    has_more: bool


# --- Analytics ---
class BehaviorLog(BaseModel):
    id: int | None = None
    session_id: str
    event_type: BehaviorEvent
    question_number: int | None = None
    timestamp: datetime
    event_data: dict[str, Any] = {}


class ProblemQuestion(BaseModel):
    question_number: int
    abandon_count: int


class SpeedBucket(BaseModel):
    avg_score: int = 0
    count: int = 0


class DeviceBucket(BaseModel):
    completion_rate: int = 0
    count: int = 0


class AnalyticsStats(BaseModel):
    total_sessions: int = 0
    completed_sessions: int = 0
    abandoned_sessions: int = 0
    in_progress_sessions: int = 0
    completion_rate: int = 0
    abandon_rate: int = 0
    in_progress_rate: int = 0
    avg_completion_time: int = 0
    problem_questions: list[ProblemQuestion] = []
    device_stats: dict[str, DeviceBucket] = Field(
        default_factory=lambda: {"mobile": DeviceBucket(), "desktop": DeviceBucket()}
    )
    peak_hour: int = 9
    main_abandon_reason: str = "N/A"
    score_vs_speed: dict[str, SpeedBucket] = Field(
        default_factory=lambda: {
            "fast": SpeedBucket(),
            "medium": SpeedBucket(),
            "slow": SpeedBucket(),
        }
    )
