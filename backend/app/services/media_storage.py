"""
Local filesystem storage for cover and gallery images.

The database only ever holds canonical relative paths
(``/cover-images/<file>`` or ``/news-images/<file>``) or, for images hosted
elsewhere, the external URL verbatim. Absolute URLs are built on the way out.
"""

import asyncio
import logging
import os
import re
import secrets
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional
from urllib.parse import urlparse

import magic
from fastapi import Request, UploadFile

logger = logging.getLogger(__name__)

COVER = "cover"
NEWS = "news"

_DIRECTORIES = {COVER: "cover-images", NEWS: "news-images"}
_FILE_PREFIXES = {COVER: "cover", NEWS: "news"}
_LOCAL_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0"}
_UPLOAD_URL_PATH = re.compile(r"/(?:public/)?uploads/(cover-images|news-images)/([^/]+)$")
_EXTENSION = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


class UploadRejected(ValueError):
    """An uploaded file failed type/size/count checks."""


class DeleteOutcome(str, Enum):
    DELETED = "deleted"
    MISSING = "missing"
    SKIPPED = "skipped"


@dataclass
class FileCleanupReport:
    """Outcome of a best-effort batch of file deletions."""

    attempted: int = 0
    deleted: int = 0
    missing: int = 0
    skipped: int = 0
    failed: List[str] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    def merge(self, other: "FileCleanupReport") -> "FileCleanupReport":
        return FileCleanupReport(
            attempted=self.attempted + other.attempted,
            deleted=self.deleted + other.deleted,
            missing=self.missing + other.missing,
            skipped=self.skipped + other.skipped,
            failed=self.failed + other.failed,
        )

    def as_dict(self) -> dict:
        return {
            "attempted": self.attempted,
            "deleted": self.deleted,
            "missing": self.missing,
            "skipped": self.skipped,
            "failed": list(self.failed),
        }


class MediaStorage:
    """Resolves image references and manages the upload directories."""

    def __init__(
        self,
        root: str,
        base_url: str = "http://localhost:8000",
        url_prefix: str = "/public/uploads",
        max_file_size: int = 5 * 1024 * 1024,
        allowed_types: Optional[Iterable[str]] = None,
    ):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")
        self.url_prefix = "/" + url_prefix.strip("/")
        self.max_file_size = max_file_size
        self.allowed_types = set(
            allowed_types
            or ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp")
        )
        self._own_netloc = urlparse(self.base_url).netloc.lower()

    def ensure_directories(self) -> None:
        for directory in _DIRECTORIES.values():
            path = self.root / directory
            if not path.exists():
                path.mkdir(parents=True, exist_ok=True)
                logger.info(f"Created upload directory: {path}")

    def directory(self, kind: str) -> Path:
        return self.root / _DIRECTORIES[kind]

    # Path resolution

    def _is_own_host(self, netloc: str) -> bool:
        netloc = netloc.lower()
        host = netloc.rsplit("@", 1)[-1].split(":", 1)[0]
        return netloc == self._own_netloc or host in _LOCAL_HOSTS

    @staticmethod
    def is_canonical(reference: Optional[str]) -> bool:
        return bool(reference) and any(
            reference.startswith(f"/{directory}/") for directory in _DIRECTORIES.values()
        )

    def to_relative_path(self, reference: Optional[str], kind: str = COVER) -> Optional[str]:
        """
        Normalise an image reference into its stored form.

        Absolute URLs into this service's uploads become canonical relative
        paths; other absolute URLs are returned unchanged. Filesystem paths
        and bare file names are placed under the directory for ``kind``.
        """
        if not reference:
            return None

        if reference.startswith(("http://", "https://")):
            try:
                parsed = urlparse(reference)
            except ValueError:
                return reference
            match = _UPLOAD_URL_PATH.search(parsed.path)
            if match and self._is_own_host(parsed.netloc):
                return f"/{match.group(1)}/{match.group(2)}"
            return reference

        if self.is_canonical(reference):
            return reference

        filename = os.path.basename(reference.replace("\\", "/"))
        if not filename:
            return None
        return f"/{_DIRECTORIES[kind]}/{filename}"

    def absolute_url(self, relative_path: Optional[str]) -> Optional[str]:
        """Public URL for a stored reference (presentation only)."""
        if not relative_path:
            return None
        if relative_path.startswith(("http://", "https://")):
            return relative_path
        return f"{self.base_url}{self.url_prefix}{relative_path}"

    def file_path(self, relative_path: str) -> Optional[Path]:
        """On-disk location of a canonical path, or None if it is not one."""
        if not self.is_canonical(relative_path):
            return None
        directory, _, filename = relative_path.lstrip("/").partition("/")
        filename = os.path.basename(filename)
        if not filename or filename in (".", ".."):
            return None
        return self.root / directory / filename

    # Deletion

    def delete_file(self, reference: Optional[str], kind: str = COVER) -> DeleteOutcome:
        """
        Remove the file behind ``reference``.

        External URLs are skipped and an already absent file counts as
        MISSING; any OSError from the unlink propagates to the caller.
        """
        relative_path = self.to_relative_path(reference, kind)
        path = self.file_path(relative_path) if relative_path else None
        if path is None:
            logger.debug(f"Skipping deletion - not a local upload: {reference}")
            return DeleteOutcome.SKIPPED

        if not path.exists():
            logger.warning(f"File not found for deletion: {path} (URL: {reference})")
            return DeleteOutcome.MISSING

        path.unlink()
        logger.info(f"Successfully deleted file: {path}")
        return DeleteOutcome.DELETED

    async def delete_files(self, references: Iterable[str], kind: str = NEWS) -> FileCleanupReport:
        """Delete several files concurrently; failures are logged and reported."""
        references = [ref for ref in references if ref]
        report = FileCleanupReport(attempted=len(references))
        if not references:
            return report

        results = await asyncio.gather(
            *(asyncio.to_thread(self.delete_file, ref, kind) for ref in references),
            return_exceptions=True,
        )

        for reference, result in zip(references, results):
            if isinstance(result, BaseException):
                logger.error(f"Error deleting file {reference}: {result}")
                report.failed.append(reference)
            elif result is DeleteOutcome.DELETED:
                report.deleted += 1
            elif result is DeleteOutcome.MISSING:
                report.missing += 1
            else:
                report.skipped += 1

        if report.failed:
            logger.error(
                f"{len(report.failed)} of {report.attempted} file deletions failed",
                extra={"failed_files": report.failed},
            )
        return report

    # Uploads

    def generate_filename(self, kind: str, original_name: Optional[str]) -> str:
        ext = os.path.splitext(os.path.basename(original_name or ""))[1].lower()
        if not _EXTENSION.match(ext):
            ext = ""
        unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        return f"{_FILE_PREFIXES[kind]}-{unique_suffix}{ext}"

    def check_upload(self, upload: UploadFile) -> None:
        if upload.content_type not in self.allowed_types:
            raise UploadRejected(
                "Invalid file type. Only JPEG, JPG, PNG, GIF, and WEBP images are allowed."
            )

    async def save_upload(self, upload: UploadFile, kind: str) -> str:
        """Validate and write an uploaded image; return its canonical path."""
        self.check_upload(upload)

        data = await upload.read(self.max_file_size + 1)
        if len(data) > self.max_file_size:
            raise UploadRejected(
                f"File too large. Maximum size is {self.max_file_size // (1024 * 1024)}MB per image."
            )

        # Validate actual file type using magic bytes
        mime_type = magic.from_buffer(data, mime=True)
        if mime_type not in self.allowed_types:
            logger.warning(f"Invalid file type '{mime_type}' (magic bytes) for upload {upload.filename!r}")
            raise UploadRejected(
                "Invalid file type. Only JPEG, JPG, PNG, GIF, and WEBP images are allowed."
            )

        filename = self.generate_filename(kind, upload.filename)
        directory = self.directory(kind)
        directory.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread((directory / filename).write_bytes, data)
        logger.info(f"Stored uploaded image {upload.filename!r} as {filename}")
        return f"/{_DIRECTORIES[kind]}/{filename}"


def get_media_storage(request: Request) -> MediaStorage:
    """FastAPI dependency returning the app's MediaStorage."""
    return request.app.state.media_storage
