import posixpath
import re
from datetime import datetime, timezone

from src.cms.domain.models import MediaFile, MediaListing, StoredObject
from src.cms.domain.ports import IMediaStorage
from src.config import AppConfig
from src.shared.errors import StorageConflictError, ValidationError
from src.shared.pagination import page_offset
from src.shared.telemetry import Telemetry, measure_time

EXTENSION_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "pdf": "application/pdf",
    "txt": "text/plain",
}
DEFAULT_MIME_TYPE = "application/octet-stream"
SORT_FIELDS = ("name", "size", "created_at")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def mime_from_name(name: str) -> str:
    extension = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return EXTENSION_MIME_TYPES.get(extension, DEFAULT_MIME_TYPE)


def file_kind(mime_type: str) -> str:
    if mime_type.startswith("image/"):
        return "image"
    if mime_type.startswith("video/"):
        return "video"
    return "document"


def clean_file_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.-]", "_", posixpath.basename(name)) or "file"


def with_suffix(name: str, attempt: int) -> str:
    stem, dot, extension = name.rpartition(".")
    if not dot or not stem:
        return f"{name}_{attempt}"
    return f"{stem}_{attempt}.{extension}"


class MediaService:
    """Media manager on top of a storage bucket."""

    def __init__(
        self,
        storage: IMediaStorage,
        max_upload_bytes: int = AppConfig.MAX_UPLOAD_BYTES,
        max_attempts: int = AppConfig.MEDIA_RENAME_ATTEMPTS,
    ) -> None:
        self.storage = storage
        self.max_upload_bytes = max_upload_bytes
        self.max_attempts = max_attempts
        self.telemetry = Telemetry("MediaService")

    def _to_media_file(self, obj: StoredObject) -> MediaFile:
        name = posixpath.basename(obj.path)
        mime_type = obj.mimetype or mime_from_name(name)
        url = self.storage.public_url(obj.path)
        stamp = obj.updated_at or obj.created_at
        if stamp:
            # Cache-buster: a replaced file keeps its path
            url = f"{url}?t={int(stamp.timestamp() * 1000)}"
        return MediaFile(
            id=obj.path,
            name=name,
            size=obj.size,
            type=mime_type,
            url=url,
            created_at=obj.created_at,
            updated_at=obj.updated_at,
        )

    @measure_time("media_list")
    def list_media(
        self,
        page: int = 1,
        limit: int = AppConfig.MEDIA_PAGE_SIZE,
        search: str = "",
        type: str = "all",
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> MediaListing:
        if sort_by not in SORT_FIELDS:
            raise ValidationError(f"sort_by must be one of {', '.join(SORT_FIELDS)}")
        page, limit = max(page, 1), max(limit, 1)

        files = [self._to_media_file(o) for o in self.storage.list_objects()]

        needle = search.strip().lower()
        if needle:
            files = [f for f in files if needle in f.name.lower()]
        if type != "all":
            files = [f for f in files if file_kind(f.type) == type]

        def sort_key(f: MediaFile) -> object:
            if sort_by == "name":
                return f.name.lower()
            if sort_by == "size":
                return f.size
            return f.created_at or _EPOCH

        files.sort(key=sort_key, reverse=sort_order == "desc")

        start = page_offset(page, limit)
        end = start + limit
        return MediaListing(
            files=files[start:end],
            total=len(files),
            page=page,
            limit=limit,
            has_more=end < len(files),
        )

    @measure_time("media_upload")
    def upload(
        self,
        filename: str,
        content: bytes,
        content_type: str | None = None,
        folder: str = "",
        replace_path: str | None = None,
    ) -> MediaFile:
        if not content:
            raise ValidationError("No file was uploaded")
        if len(content) > self.max_upload_bytes:
            raise ValidationError(
                f"File is too large (max {self.max_upload_bytes // (1024 * 1024)}MB)"
            )

        if replace_path:
            mime_type = content_type or mime_from_name(replace_path)
            stored = self.storage.upload(replace_path, content, mime_type, upsert=True)
            self.telemetry.log_info("Media replaced", path=replace_path)
            return self._to_media_file(stored)

        clean_name = clean_file_name(filename)
        mime_type = content_type or mime_from_name(clean_name)
        folder = folder.strip("/")

        name = clean_name
        for attempt in range(self.max_attempts + 1):
            if attempt:
                name = with_suffix(clean_name, attempt)
            path = f"{folder}/{name}" if folder else name
            try:
                stored = self.storage.upload(path, content, mime_type)
            except StorageConflictError:
                continue
            self.telemetry.log_info("Media uploaded", path=path, size=len(content))
            return self._to_media_file(stored)

        raise StorageConflictError(
            f"Could not find a free name for {clean_name} after {self.max_attempts} tries"
        )

    def delete(self, paths: list[str]) -> int:
        paths = [p for p in paths if p and p.strip()]
        if not paths:
            raise ValidationError("No files selected for deletion")
        self.storage.remove(paths)
        self.telemetry.log_info("Media deleted", count=len(paths))
        return len(paths)

    def rename(self, old_path: str, new_name: str) -> MediaFile:
        if not old_path or not new_name or not new_name.strip():
            raise ValidationError("old_path and new_name are required")

        folder = posixpath.dirname(old_path)
        name = clean_file_name(new_name.strip())
        new_path = f"{folder}/{name}" if folder else name
        if new_path == old_path:
            raise ValidationError("The new name matches the current one")

        self.storage.copy(old_path, new_path)
        try:
            self.storage.remove([old_path])
        except Exception as e:
            # The copy exists; keep it and report the leftover original
            self.telemetry.log_error("Old file could not be removed after rename", e, path=old_path)

        renamed = next(
            (o for o in self.storage.list_objects() if o.path == new_path),
            StoredObject(path=new_path, mimetype=mime_from_name(name)),
        )
        return self._to_media_file(renamed)
