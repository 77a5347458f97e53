# ==============================================================================
# ARCHITECTURE: UNIT TEST (APPLICATION + LOCAL STORAGE)
# ------------------------------------------------------------------------------
# GOAL: Upload naming, listing filters and rename on a real folder.
# CONSTRAINTS:
#   1. Storage lives in pytest's tmp_path; nothing leaves it.
# ==============================================================================
import pytest

from src.cms.adapters.local_storage import LocalMediaStorage
from src.cms.application.media import (
    MediaService,
    clean_file_name,
    file_kind,
    mime_from_name,
    with_suffix,
)
from src.shared.errors import NotFoundError, StorageConflictError, ValidationError

PNG = b"\x89PNG\r\n\x1a\nfake"


@pytest.fixture
def storage(tmp_path):
    return LocalMediaStorage(str(tmp_path / "bucket"), "/media")


@pytest.fixture
def service(storage):
    return MediaService(storage, max_upload_bytes=1024, max_attempts=3)


class TestHelpers:
    def test_clean_file_name(self):
        assert clean_file_name("../My Photo (1).png") == "My_Photo__1_.png"

    def test_with_suffix(self):
        assert with_suffix("cat.png", 2) == "cat_2.png"
        assert with_suffix("README", 1) == "README_1"

    def test_mime_and_kind(self):
        assert mime_from_name("clip.MP4") == "video/mp4"
        assert mime_from_name("noext") == "application/octet-stream"
        assert file_kind("image/png") == "image"
        assert file_kind("application/pdf") == "document"


class TestUpload:
    def test_name_clash_gets_suffix(self, service):
        first = service.upload("cat.png", PNG, "image/png")
        second = service.upload("cat.png", PNG, "image/png")
        third = service.upload("cat.png", PNG, "image/png")

        assert first.id == "cat.png"
        assert second.id == "cat_1.png"
        assert third.id == "cat_2.png"

    def test_gives_up_after_max_attempts(self, service):
        for _ in range(4):
            service.upload("dog.png", PNG)

        with pytest.raises(StorageConflictError):
            service.upload("dog.png", PNG)

    def test_folder_prefix_and_url(self, service):
        media = service.upload("a b.png", PNG, folder="/articles/")

        assert media.id == "articles/a_b.png"
        assert media.url.startswith("/media/articles/a_b.png?t=")
        assert media.type == "image/png"

    def test_replace_overwrites_in_place(self, service, storage):
        service.upload("logo.png", PNG)

        replaced = service.upload("other.png", b"new-bytes", replace_path="logo.png")

        assert replaced.id == "logo.png"
        assert replaced.size == len(b"new-bytes")
        assert len(storage.list_objects()) == 1

    def test_rejects_empty_and_oversized(self, service):
        with pytest.raises(ValidationError):
            service.upload("x.png", b"")
        with pytest.raises(ValidationError):
            service.upload("x.png", b"x" * 2048)


class TestListing:
    def test_filters_search_and_type(self, service):
        service.upload("brain.png", PNG)
        service.upload("brain-notes.pdf", b"%PDF")
        service.upload("other.png", PNG)

        listing = service.list_media(search="brain", type="image")

        assert [f.name for f in listing.files] == ["brain.png"]
        assert listing.total == 1

    def test_sort_and_paging(self, service):
        for name in ("c.png", "a.png", "b.png"):
            service.upload(name, PNG)

        listing = service.list_media(page=1, limit=2, sort_by="name", sort_order="asc")

        assert [f.name for f in listing.files] == ["a.png", "b.png"]
        assert listing.has_more is True

    def test_invalid_sort_field(self, service):
        with pytest.raises(ValidationError):
            service.list_media(sort_by="owner")


class TestDeleteAndRename:
    def test_delete(self, service, storage):
        service.upload("a.png", PNG)
        service.upload("b.png", PNG)

        assert service.delete(["a.png", " "]) == 1
        assert [o.path for o in storage.list_objects()] == ["b.png"]

    def test_delete_requires_paths(self, service):
        with pytest.raises(ValidationError):
            service.delete([])

    def test_rename_keeps_folder(self, service, storage):
        service.upload("old.png", PNG, folder="articles")

        renamed = service.rename("articles/old.png", "new name.png")

        assert renamed.id == "articles/new_name.png"
        assert [o.path for o in storage.list_objects()] == ["articles/new_name.png"]

    def test_rename_to_taken_name(self, service):
        service.upload("a.png", PNG)
        service.upload("b.png", PNG)

        with pytest.raises(StorageConflictError):
            service.rename("a.png", "b.png")

    def test_rename_missing_file(self, service):
        with pytest.raises(NotFoundError):
            service.rename("ghost.png", "real.png")

    def test_storage_rejects_path_traversal(self, storage):
        with pytest.raises(ValidationError):
            storage.upload("../escape.png", PNG, "image/png")
