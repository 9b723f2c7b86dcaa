"""Tests for the media path resolver and file storage."""

import io
import re
import pytest
from starlette.datastructures import Headers, UploadFile
from app.services.media_storage import (
    COVER,
    NEWS,
    DeleteOutcome,
    FileCleanupReport,
    MediaStorage,
    UploadRejected,
)


PNG_DATA = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00\x90wS\xde"
)


def make_upload(filename="photo.png", content_type="image/png", data=PNG_DATA):
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.mark.unit
class TestPathResolution:
    """Every reference form normalises to one canonical relative path."""

    @pytest.mark.parametrize(
        "reference,kind,expected",
        [
            ("http://localhost:8000/public/uploads/cover-images/c.png", COVER, "/cover-images/c.png"),
            ("http://localhost:8000/uploads/news-images/n.png", NEWS, "/news-images/n.png"),
            ("http://127.0.0.1:5000/uploads/news-images/n.png", NEWS, "/news-images/n.png"),
            ("/news-images/n.png", NEWS, "/news-images/n.png"),
            ("/cover-images/c.png", NEWS, "/cover-images/c.png"),
            ("public/uploads/news-images/n.png", NEWS, "/news-images/n.png"),
            ("C:\\uploads\\cover-images\\c.png", COVER, "/cover-images/c.png"),
            ("c.png", COVER, "/cover-images/c.png"),
        ],
    )
    def test_local_references(self, media_storage, reference, kind, expected):
        assert media_storage.to_relative_path(reference, kind) == expected

    @pytest.mark.parametrize(
        "reference",
        [
            "https://cdn.example.org/images/pic.jpg",
            # Same path shape on a foreign host stays external
            "https://cdn.example.org/uploads/news-images/pic.jpg",
            "http://localhost:8000/static/pic.jpg",
        ],
    )
    def test_external_urls_kept_verbatim(self, media_storage, reference):
        assert media_storage.to_relative_path(reference, NEWS) == reference

    def test_own_base_url_host(self, tmp_path):
        media = MediaStorage(str(tmp_path), base_url="https://api.example.edu")

        resolved = media.to_relative_path(
            "https://api.example.edu/public/uploads/news-images/n.png", NEWS
        )

        assert resolved == "/news-images/n.png"

    @pytest.mark.parametrize("reference", [None, ""])
    def test_empty_reference(self, media_storage, reference):
        assert media_storage.to_relative_path(reference) is None

    def test_absolute_url(self, media_storage):
        assert (
            media_storage.absolute_url("/news-images/n.png")
            == "http://localhost:8000/public/uploads/news-images/n.png"
        )
        assert media_storage.absolute_url("https://cdn.example.org/x.png") == "https://cdn.example.org/x.png"
        assert media_storage.absolute_url(None) is None

    def test_file_path_refuses_traversal(self, media_storage):
        assert media_storage.file_path("/news-images/../../etc/passwd") == (
            media_storage.root / "news-images" / "passwd"
        )
        assert media_storage.file_path("/etc/passwd") is None


@pytest.mark.unit
class TestDeletion:
    def test_delete_existing_file(self, media_storage, stored_file):
        path = stored_file("/news-images/a.jpg")

        assert media_storage.delete_file(path, NEWS) is DeleteOutcome.DELETED
        assert not media_storage.file_path(path).exists()

    def test_delete_absent_file(self, media_storage):
        assert media_storage.delete_file("/news-images/none.jpg", NEWS) is DeleteOutcome.MISSING

    def test_delete_external_url(self, media_storage):
        outcome = media_storage.delete_file("https://cdn.example.org/a.jpg", NEWS)

        assert outcome is DeleteOutcome.SKIPPED

    async def test_delete_files_reports_each_outcome(self, media_storage, stored_file):
        present = stored_file("/news-images/a.jpg")

        report = await media_storage.delete_files(
            [present, "/news-images/missing.jpg", "https://cdn.example.org/x.jpg", None],
            NEWS,
        )

        assert report == FileCleanupReport(attempted=3, deleted=1, missing=1, skipped=1)
        assert not report.has_failures

    async def test_delete_failure_is_reported_not_raised(self, media_storage, stored_file):
        ok = stored_file("/news-images/ok.jpg")
        # A directory where a file is expected makes unlink fail
        media_storage.file_path("/news-images/dir.jpg").mkdir()

        report = await media_storage.delete_files([ok, "/news-images/dir.jpg"], NEWS)

        assert report.deleted == 1
        assert report.failed == ["/news-images/dir.jpg"]
        assert report.has_failures

    def test_merge_reports(self):
        merged = FileCleanupReport(attempted=1, deleted=1).merge(
            FileCleanupReport(attempted=2, missing=1, failed=["/news-images/x.jpg"])
        )

        assert merged.as_dict() == {
            "attempted": 3,
            "deleted": 1,
            "missing": 1,
            "skipped": 0,
            "failed": ["/news-images/x.jpg"],
        }


@pytest.mark.unit
class TestUploads:
    def test_generated_filename(self, media_storage):
        name = media_storage.generate_filename(COVER, "../../My Photo.JPG")

        assert re.fullmatch(r"cover-\d+-\d+\.jpg", name)

    def test_generated_filename_without_extension(self, media_storage):
        assert re.fullmatch(r"news-\d+-\d+", media_storage.generate_filename(NEWS, "README"))

    async def test_save_upload(self, media_storage):
        path = await media_storage.save_upload(make_upload(), NEWS)

        assert path.startswith("/news-images/news-")
        assert media_storage.file_path(path).read_bytes() == PNG_DATA

    async def test_save_rejects_content_that_is_not_an_image(self, media_storage):
        upload = make_upload("fake.png", "image/png", b"<html><body>not an image</body></html>")

        with pytest.raises(UploadRejected, match="Invalid file type"):
            await media_storage.save_upload(upload, NEWS)
        assert list(media_storage.directory(NEWS).iterdir()) == []

    async def test_save_rejects_mime_type(self, media_storage):
        with pytest.raises(UploadRejected):
            await media_storage.save_upload(make_upload("a.pdf", "application/pdf"), NEWS)

    async def test_save_rejects_large_file(self, tmp_path):
        media = MediaStorage(str(tmp_path), max_file_size=10)
        media.ensure_directories()

        with pytest.raises(UploadRejected, match="File too large"):
            await media.save_upload(make_upload(data=b"x" * 11), COVER)
        assert list(media.directory(COVER).iterdir()) == []
