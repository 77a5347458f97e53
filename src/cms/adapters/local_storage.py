import mimetypes
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path

from src.cms.domain.models import StoredObject
from src.cms.domain.ports import IMediaStorage
from src.shared.errors import NotFoundError, StorageConflictError, ValidationError
from src.shared.telemetry import Telemetry


class LocalMediaStorage(IMediaStorage):
    """Filesystem stand-in for the Supabase `images` bucket."""

    def __init__(self, root: str, public_base_url: str = "/media") -> None:
        self.telemetry = Telemetry("LocalMediaStorage")
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        relative = Path(path)
        if relative.is_absolute() or ".." in relative.parts or not path.strip():
            raise ValidationError(f"Invalid storage path: {path!r}")
        return self.root / relative

    def _describe(self, file: Path) -> StoredObject:
        stat = file.stat()
        return StoredObject(
            path=file.relative_to(self.root).as_posix(),
            size=stat.st_size,
            mimetype=mimetypes.guess_type(file.name)[0],
            created_at=datetime.fromtimestamp(stat.st_ctime, tz=timezone.utc),
            updated_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    def list_objects(self) -> list[StoredObject]:
        objects: list[StoredObject] = []
        for entry in sorted(self.root.iterdir()):
            if entry.name.startswith("."):
                continue
            if entry.is_file():
                objects.append(self._describe(entry))
            elif entry.is_dir():
                # One folder level, same as the bucket listing
                objects.extend(
                    self._describe(child)
                    for child in sorted(entry.iterdir())
                    if child.is_file() and not child.name.startswith(".")
                )
        return objects

    def upload(
        self, path: str, content: bytes, content_type: str, upsert: bool = False
    ) -> StoredObject:
        target = self._resolve(path)
        if target.exists() and not upsert:
            raise StorageConflictError(f"The resource already exists: {path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        self.telemetry.log_info("Stored media", path=path, size=len(content))
        return self._describe(target)

    def remove(self, paths: list[str]) -> None:
        for path in paths:
            target = self._resolve(path)
            if target.is_file():
                os.remove(target)

    def copy(self, source: str, destination: str) -> None:
        src = self._resolve(source)
        dst = self._resolve(destination)
        if not src.is_file():
            raise NotFoundError(f"File not found: {source}")
        if dst.exists():
            raise StorageConflictError(f"The resource already exists: {destination}")
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{path}"
