from dataclasses import asdict
from typing import Literal
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_services, ok, require_admin_token
from src.api.schemas import (
    BulkDeleteRequest,
    BulkStatusRequest,
    SeoAnalysisRequest,
    SingleTagRequest,
    TagInputRequest,
)
from src.cms.domain.models import ArticleDraft, ArticleStatus
from src.cms.domain.seo import analyze_links, analyze_seo
from src.cms.domain.tags import (
    create_tag_feedback_message,
    default_normalize_tag,
    extract_tags_from_content,
    format_tags_for_display,
    lowercase_normalize_tag,
)
from src.config import AppConfig
from src.container import Services

TAG_STYLES = {"lowercase": lowercase_normalize_tag, "canonical": default_normalize_tag}

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin_token)],
)


# --- Analytics ---


@router.get("/analytics")
def analytics(services: Services = Depends(get_services)):
    return ok(services.analytics.get_analytics_stats().model_dump())


# --- Users ---


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(AppConfig.USERS_PAGE_SIZE, ge=1, le=200),
    search: str | None = None,
    role: str | None = None,
    verified: bool | None = None,
    user_type: Literal["all", "registered", "anonymous"] = "all",
    services: Services = Depends(get_services),
):
    result = services.users.list_users(page, limit, search, role, verified, user_type)
    return ok(result.model_dump(mode="json"))


# --- Articles ---


@router.get("/articles")
def list_articles(
    page: int = Query(1, ge=1),
    limit: int = Query(AppConfig.ARTICLES_PAGE_SIZE, ge=1, le=100),
    status: ArticleStatus | None = None,
    search: str | None = None,
    services: Services = Depends(get_services),
):
    result = services.articles.list_articles(page, limit, status, search)
    return ok(result.model_dump(mode="json"))


@router.get("/articles/stats")
def article_stats(services: Services = Depends(get_services)):
    return ok(services.articles.get_stats().model_dump())


@router.post("/articles", status_code=201)
def create_article(draft: ArticleDraft, services: Services = Depends(get_services)):
    article = services.articles.create_article(draft)
    return ok(article.model_dump(mode="json"), status_code=201)


@router.get("/articles/{article_id}")
def get_article(article_id: str, services: Services = Depends(get_services)):
    return ok(services.articles.get_article(article_id).model_dump(mode="json"))


@router.patch("/articles/{article_id}")
def update_article(
    article_id: str, draft: ArticleDraft, services: Services = Depends(get_services)
):
    article = services.articles.update_article(article_id, draft)
    return ok(article.model_dump(mode="json"))


@router.post("/articles/bulk-status")
def bulk_status(body: BulkStatusRequest, services: Services = Depends(get_services)):
    updated = services.articles.bulk_update_status(body.ids, body.status)
    return ok({"updated": updated})


@router.post("/articles/bulk-delete")
def bulk_delete(body: BulkDeleteRequest, services: Services = Depends(get_services)):
    deleted = services.articles.bulk_delete(body.ids)
    return ok({"deleted": deleted})


@router.post("/articles/{article_id}/tags")
def add_tags(
    article_id: str, body: TagInputRequest, services: Services = Depends(get_services)
):
    article, result = services.articles.add_tags(
        article_id, body.tags, normalize=TAG_STYLES[body.style]
    )
    message, level = create_tag_feedback_message(result)
    return ok(
        {"tags": article.tags, "result": asdict(result)}, message=message, level=level
    )


@router.post("/articles/{article_id}/tags/check")
def check_tag(
    article_id: str, body: SingleTagRequest, services: Services = Depends(get_services)
):
    tag = services.articles.check_tag(article_id, body.tag, normalize=TAG_STYLES[body.style])
    return ok({"tag": tag})


@router.post("/seo-analysis")
def seo_analysis(body: SeoAnalysisRequest):
    analysis = analyze_seo(
        body.title, body.content, body.meta_description, body.slug, body.focus_keyword
    )
    links = analyze_links(body.content, urlparse(AppConfig.SITE_URL).netloc)
    suggested, more = format_tags_for_display(extract_tags_from_content(body.content))
    return ok(
        {
            **asdict(analysis),
            "badge": analysis.badge,
            "links": {**asdict(links), "total_links": links.total_links},
            "suggested_tags": suggested,
            "more_suggestions": more,
        }
    )


# --- Caches ---


@router.get("/cache")
def cache_status(services: Services = Depends(get_services)):
    """Drops expired entries, then reports what each in-process cache holds."""
    report = {}
    for name, cache in (
        ("analytics", services.analytics.cache),
        ("leaderboard", services.leaderboard.cache),
    ):
        report[name] = {"expired_removed": cache.clear_expired(), **cache.stats()}
    return ok(report)
