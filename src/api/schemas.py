from typing import Any, Literal

from pydantic import BaseModel, Field

from src.cms.domain.models import ArticleStatus, BehaviorEvent
from src.iqtest.domain.models import UserInfo


class PublishingActionRequest(BaseModel):
    action: str


class DeleteMediaRequest(BaseModel):
    file_paths: list[str] = []


class RenameMediaRequest(BaseModel):
    old_path: str
    new_name: str


class BulkStatusRequest(BaseModel):
    ids: list[str]
    status: ArticleStatus


class BulkDeleteRequest(BaseModel):
    ids: list[str]


class TagInputRequest(BaseModel):
    tags: str
    # "canonical" keeps acronyms like SEO and capitalizes the rest
    style: Literal["lowercase", "canonical"] = "lowercase"


class SingleTagRequest(BaseModel):
    tag: str
    style: Literal["lowercase", "canonical"] = "lowercase"


class SeoAnalysisRequest(BaseModel):
    title: str = ""
    content: str = ""
    meta_description: str | None = None
    slug: str | None = None
    focus_keyword: str | None = None


class TrackViewRequest(BaseModel):
    article_id: str


class BehaviorLogRequest(BaseModel):
    session_id: str
    event_type: BehaviorEvent
    question_number: int | None = None
    event_data: dict[str, Any] = {}


class SubmitResultRequest(BaseModel):
    user_info: UserInfo
    answers: list[int | None]
    time_spent: int = Field(ge=0)
    session_id: str | None = None
    user_id: str | None = None
