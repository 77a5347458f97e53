from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from src.api.dependencies import get_services, ok, require_admin_token
from src.api.schemas import DeleteMediaRequest, RenameMediaRequest
from src.cms.domain.models import MediaType
from src.config import AppConfig
from src.container import Services

router = APIRouter(
    prefix="/api/admin/media",
    tags=["media"],
    dependencies=[Depends(require_admin_token)],
)


@router.get("")
def list_media(
    page: int = Query(1, ge=1),
    limit: int = Query(AppConfig.MEDIA_PAGE_SIZE, ge=1, le=100),
    search: str = "",
    type: MediaType = "all",
    sort_by: str = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    services: Services = Depends(get_services),
):
    listing = services.media.list_media(page, limit, search, type, sort_by, sort_order)
    return ok(listing.model_dump(mode="json"))


@router.post("", status_code=201)
def upload_media(
    file: UploadFile = File(...),
    folder: str = Form(""),
    replace_path: str | None = Form(None),
    services: Services = Depends(get_services),
):
    # One byte past the limit is enough for the service to reject it
    content = file.file.read(services.media.max_upload_bytes + 1)
    media = services.media.upload(
        file.filename or "upload",
        content,
        file.content_type,
        folder=folder,
        replace_path=replace_path,
    )
    return ok(media.model_dump(mode="json"), status_code=201, message="File uploaded")


@router.delete("")
def delete_media(body: DeleteMediaRequest, services: Services = Depends(get_services)):
    deleted = services.media.delete(body.file_paths)
    return ok({"deleted": deleted}, message=f"Deleted {deleted} file(s)")


@router.put("/rename")
def rename_media(body: RenameMediaRequest, services: Services = Depends(get_services)):
    media = services.media.rename(body.old_path, body.new_name)
    return ok(media.model_dump(mode="json"), message="File renamed")
