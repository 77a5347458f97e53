import uuid
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from src.cms.domain.models import (
    Article,
    ArticleDraft,
    ArticleFilters,
    ArticleStats,
    ArticleStatus,
)
from src.cms.domain.ports import IArticleRepository
from src.cms.domain.seo import make_excerpt, reading_time
from src.cms.domain.slugs import generate_slug, unique_slug
from src.cms.domain.tags import (
    TagProcessingResult,
    lowercase_normalize_tag,
    process_bulk_tags,
    validate_single_tag,
)
from src.cms.domain.validation import validate_article_data
from src.config import AppConfig
from src.shared.clock import ensure_utc, utcnow
from src.shared.errors import NotFoundError, ValidationError
from src.shared.pagination import Page, page_offset
from src.shared.telemetry import Telemetry, measure_time


class ArticleService:
    """Editor-facing operations on articles."""

    def __init__(self, repo: IArticleRepository) -> None:
        self.repo = repo
        self.telemetry = Telemetry("ArticleService")

    def _unique_slug(self, source: str, exclude_id: str | None = None) -> str:
        base = generate_slug(source)
        if not base:
            raise ValidationError("Slug cannot be generated from an empty title")
        return unique_slug(base, lambda s: self.repo.slug_exists(s, exclude_id))

    def get_article(self, article_id: str) -> Article:
        article = self.repo.get_article(article_id)
        if article is None:
            raise NotFoundError(f"Article {article_id} not found")
        return article

    @measure_time("create_article")
    def create_article(self, draft: ArticleDraft) -> Article:
        errors = validate_article_data(draft)
        if errors:
            raise ValidationError("; ".join(errors))

        title = (draft.title or "").strip()
        content = (draft.content or "").strip()
        now = utcnow()
        status = draft.status or ArticleStatus.DRAFT
        slug_source = draft.slug.strip() if draft.slug and draft.slug.strip() else title

        article = Article(
            id=str(uuid.uuid4()),
            title=title,
            slug=self._unique_slug(slug_source),
            content=content,
            excerpt=(draft.excerpt or "").strip() or make_excerpt(content),
            status=status,
            author_id=draft.author_id,
            categories=draft.categories or [],
            tags=draft.tags or [],
            featured_image=draft.featured_image,
            meta_title=draft.meta_title,
            meta_description=draft.meta_description,
            focus_keyword=draft.focus_keyword,
            reading_time=reading_time(content),
            scheduled_at=ensure_utc(draft.scheduled_at) if draft.scheduled_at else None,
            published_at=now if status == ArticleStatus.PUBLISHED else None,
            created_at=now,
            updated_at=now,
        )
        saved = self.repo.insert_article(article)
        self.telemetry.log_info("Article created", id=saved.id, slug=saved.slug)
        return saved

    @measure_time("update_article")
    def update_article(self, article_id: str, draft: ArticleDraft) -> Article:
        current = self.get_article(article_id)
        errors = validate_article_data(
            draft.model_copy(
                update={"scheduled_at": draft.scheduled_at or current.scheduled_at}
            ),
            partial=True,
        )
        if errors:
            raise ValidationError("; ".join(errors))

        fields: dict[str, Any] = draft.model_dump(exclude_unset=True)
        now = utcnow()

        # Non-nullable columns: null means "leave as is" or "clear the list"
        if "status" in fields and fields["status"] is None:
            fields.pop("status")
        for key in ("categories", "tags"):
            if key in fields and fields[key] is None:
                fields[key] = []

        if "title" in fields and fields["title"]:
            fields["title"] = fields["title"].strip()
        if "content" in fields and fields["content"]:
            fields["content"] = fields["content"].strip()
            fields["reading_time"] = reading_time(fields["content"])
        if fields.get("slug") and fields["slug"] != current.slug:
            fields["slug"] = self._unique_slug(fields["slug"], exclude_id=article_id)
        elif "slug" in fields:
            fields.pop("slug")
        if fields.get("scheduled_at"):
            fields["scheduled_at"] = ensure_utc(fields["scheduled_at"])
        if fields.get("status") == ArticleStatus.PUBLISHED and current.published_at is None:
            fields["published_at"] = now
        fields["updated_at"] = now

        updated = self.repo.update_article(article_id, fields)
        if updated is None:
            raise NotFoundError(f"Article {article_id} not found")
        return updated

    def list_articles(
        self,
        page: int = 1,
        limit: int = AppConfig.ARTICLES_PAGE_SIZE,
        status: ArticleStatus | None = None,
        search: str | None = None,
    ) -> Page[Article]:
        filters = ArticleFilters(status=status, search=(search or "").strip() or None)
        items, total = self.repo.list_articles(filters, page_offset(page, limit), limit)
        return Page.build(items, total, page, limit)

    def bulk_update_status(self, article_ids: list[str], status: ArticleStatus) -> int:
        if not article_ids:
            raise ValidationError("No articles selected")
        if status == ArticleStatus.SCHEDULED:
            raise ValidationError("Scheduling requires a date; edit articles one by one")
        updated = self.repo.update_status(article_ids, status, utcnow())
        self.telemetry.log_info("Bulk status update", status=status.value, count=updated)
        return updated

    def bulk_delete(self, article_ids: list[str]) -> int:
        if not article_ids:
            raise ValidationError("No articles selected")
        deleted = self.repo.delete_articles(article_ids)
        self.telemetry.log_info("Bulk delete", count=deleted)
        return deleted

    def add_tags(
        self,
        article_id: str,
        raw_input: str,
        normalize: Callable[[str], str] = lowercase_normalize_tag,
    ) -> tuple[Article, TagProcessingResult]:
        article = self.get_article(article_id)
        result = process_bulk_tags(raw_input, existing=article.tags, normalize=normalize)
        if result.valid_tags:
            updated = self.repo.update_article(
                article_id,
                {"tags": article.tags + result.valid_tags, "updated_at": utcnow()},
            )
            article = updated or article
        return article, result

    def check_tag(
        self,
        article_id: str,
        tag: str,
        normalize: Callable[[str], str] = lowercase_normalize_tag,
    ) -> str:
        """Normalized form of a single tag, or ValidationError with the reason."""
        article = self.get_article(article_id)
        normalized, error = validate_single_tag(tag, article.tags, normalize=normalize)
        if error or normalized is None:
            raise ValidationError(error or "Invalid tag")
        return normalized

    def track_view(self, article_id: str) -> bool:
        return self.repo.increment_view_count(article_id)

    @measure_time("article_stats")
    def get_stats(self) -> ArticleStats:
        articles = self.repo.list_all()
        if not articles:
            return ArticleStats()

        week_ago = utcnow() - timedelta(days=7)
        by_status = {s: 0 for s in ArticleStatus}
        for a in articles:
            by_status[a.status] += 1

        return ArticleStats(
            total=len(articles),
            published=by_status[ArticleStatus.PUBLISHED],
            draft=by_status[ArticleStatus.DRAFT],
            archived=by_status[ArticleStatus.ARCHIVED],
            scheduled=by_status[ArticleStatus.SCHEDULED],
            total_views=sum(a.view_count for a in articles),
            avg_reading_time=round(sum(a.reading_time for a in articles) / len(articles)),
            recent_articles=sum(1 for a in articles if ensure_utc(a.created_at) >= week_ago),
        )
