from src.cms.domain.models import ArticleDraft, ArticleStatus

TITLE_MIN, TITLE_MAX = 3, 200
CONTENT_MIN = 10


def validate_article_data(draft: ArticleDraft, partial: bool = False) -> list[str]:
    """
    Returns human-readable problems; an empty list means the draft is valid.
    With `partial`, missing fields are allowed (PATCH semantics); a field
    sent as null still counts as empty.
    """
    errors: list[str] = []
    sent = draft.model_fields_set

    if draft.title is None:
        if not partial or "title" in sent:
            errors.append("Title is required")
    else:
        title = draft.title.strip()
        if not title:
            errors.append("Title is required")
        elif len(title) < TITLE_MIN:
            errors.append(f"Title must be at least {TITLE_MIN} characters")
        elif len(title) > TITLE_MAX:
            errors.append(f"Title must be at most {TITLE_MAX} characters")

    if draft.content is None:
        if not partial or "content" in sent:
            errors.append("Content is required")
    else:
        content = draft.content.strip()
        if not content:
            errors.append("Content is required")
        elif len(content) < CONTENT_MIN:
            errors.append(f"Content must be at least {CONTENT_MIN} characters")

    if draft.status == ArticleStatus.SCHEDULED and draft.scheduled_at is None:
        errors.append("Scheduled articles need a scheduled_at date")

    return errors
