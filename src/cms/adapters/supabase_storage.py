from typing import Any

from src.cms.domain.models import StoredObject
from src.cms.domain.ports import IMediaStorage
from src.shared.clock import from_iso
from src.shared.errors import StorageConflictError
from src.shared.telemetry import Telemetry, measure_time
from supabase import Client

LIST_OPTIONS = {"limit": 1000, "sortBy": {"column": "name", "order": "asc"}}


def _is_conflict(error: Exception) -> bool:
    message = str(error).lower()
    return "already exists" in message or "duplicate" in message


class SupabaseMediaStorage(IMediaStorage):
    def __init__(self, client: Client, bucket: str) -> None:
        self.telemetry = Telemetry("SupabaseMediaStorage")
        self.bucket = bucket
        self.client = client

    def _bucket(self) -> Any:
        return self.client.storage.from_(self.bucket)

    def _to_object(self, prefix: str, item: dict[str, Any]) -> StoredObject:
        metadata = item.get("metadata") or {}
        return StoredObject(
            path=f"{prefix}{item['name']}",
            size=int(metadata.get("size") or 0),
            mimetype=metadata.get("mimetype"),
            created_at=from_iso(item.get("created_at")),
            updated_at=from_iso(item.get("updated_at")),
        )

    @measure_time("storage_list_objects")
    def list_objects(self) -> list[StoredObject]:
        try:
            root = self._bucket().list("", LIST_OPTIONS)
            objects: list[StoredObject] = []
            for item in root:
                if item.get("name", "").startswith("."):
                    continue
                # Folders come back without an id
                if item.get("id") is None:
                    children = self._bucket().list(item["name"], LIST_OPTIONS)
                    objects.extend(
                        self._to_object(f"{item['name']}/", child)
                        for child in children
                        if child.get("id") is not None
                        and not child["name"].startswith(".")
                    )
                else:
                    objects.append(self._to_object("", item))
            return objects
        except Exception as e:
            self.telemetry.log_error("Storage list failed", e, bucket=self.bucket)
            raise

    def upload(
        self, path: str, content: bytes, content_type: str, upsert: bool = False
    ) -> StoredObject:
        try:
            self._bucket().upload(
                path,
                content,
                {
                    "content-type": content_type,
                    "cache-control": "3600",
                    "upsert": "true" if upsert else "false",
                },
            )
        except Exception as e:
            if _is_conflict(e):
                raise StorageConflictError(f"The resource already exists: {path}") from e
            self.telemetry.log_error("Storage upload failed", e, path=path)
            raise
        return StoredObject(path=path, size=len(content), mimetype=content_type)

    def remove(self, paths: list[str]) -> None:
        try:
            self._bucket().remove(paths)
        except Exception as e:
            self.telemetry.log_error("Storage remove failed", e, count=len(paths))
            raise

    def copy(self, source: str, destination: str) -> None:
        try:
            self._bucket().copy(source, destination)
        except Exception as e:
            if _is_conflict(e):
                raise StorageConflictError(
                    f"The resource already exists: {destination}"
                ) from e
            self.telemetry.log_error("Storage copy failed", e, source=source)
            raise

    def public_url(self, path: str) -> str:
        return str(self._bucket().get_public_url(path)).rstrip("?")
