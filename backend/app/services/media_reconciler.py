"""
Reconciliation of a news/events item's gallery and cover image on update.

Given the image rows persisted before the update and the newly supplied image
set, work out which rows to keep, insert and remove, apply that to the image
table, then delete the files nobody references any more. File deletion is
best effort: failures are reported in the result, never raised.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.repositories import news_and_events_images
from app.services.media_storage import (
    COVER,
    NEWS,
    FileCleanupReport,
    MediaStorage,
)

logger = logging.getLogger(__name__)


class ImageSourceKind(str, Enum):
    UPLOADS = "uploads"
    REFERENCES = "references"
    CLEAR = "clear"


@dataclass
class ImageSource:
    """The new image set for an item, already in canonical form."""

    kind: ImageSourceKind
    paths: List[str] = field(default_factory=list)

    @classmethod
    def from_uploads(cls, paths: Sequence[str]) -> "ImageSource":
        return cls(ImageSourceKind.UPLOADS, list(paths))

    @classmethod
    def from_references(cls, references: Sequence[str], media: MediaStorage) -> "ImageSource":
        paths = [media.to_relative_path(ref, NEWS) for ref in references]
        paths = [path for path in paths if path]
        if not paths:
            return cls(ImageSourceKind.CLEAR)
        return cls(ImageSourceKind.REFERENCES, paths)


@dataclass(frozen=True)
class StoredImage:
    """Snapshot of an image row taken before any mutation."""

    id: int
    image_url: str
    image_order: int

    @classmethod
    def from_rows(cls, rows) -> List["StoredImage"]:
        return [cls(row.id, row.image_url, row.image_order or 0) for row in rows]


@dataclass
class ReconciliationPlan:
    keep: List[str]
    to_add: List[Tuple[str, int]]
    rows_to_delete: List[int]
    files_to_delete: List[str]
    reorder: List[Tuple[int, int]]
    clear_all: bool


@dataclass
class ReconciliationResult:
    kept: List[str]
    added: List[str]
    removed: List[str]
    cleanup: FileCleanupReport


def dedupe(paths: Sequence[str]) -> List[str]:
    seen = set()
    unique = []
    for path in paths:
        if path not in seen:
            seen.add(path)
            unique.append(path)
    return unique


def plan_reconciliation(
    old_images: Sequence[StoredImage],
    new_paths: Sequence[str],
    retained: Iterable[Optional[str]] = (),
) -> ReconciliationPlan:
    """
    Diff the persisted rows against the new canonical paths.

    Kept rows retain their id and take the position of the path in
    ``new_paths``. Extra rows for a path that is still wanted are dropped
    without touching the file. Rows for paths in ``retained`` (the item's
    cover, say) are removed but their files stay on disk.
    """
    wanted = dedupe(new_paths)
    still_referenced = {path for path in retained if path}
    wanted_positions = {path: index for index, path in enumerate(wanted)}

    first_row: Dict[str, StoredImage] = {}
    rows_to_delete: List[int] = []
    files_to_delete: List[str] = []
    for row in old_images:
        if row.image_url in first_row:
            # Duplicate row for a path already seen
            rows_to_delete.append(row.id)
            continue
        first_row[row.image_url] = row
        if row.image_url not in wanted_positions:
            rows_to_delete.append(row.id)
            if row.image_url not in still_referenced:
                files_to_delete.append(row.image_url)

    keep = [path for path in wanted if path in first_row]
    to_add = [(path, wanted_positions[path]) for path in wanted if path not in first_row]
    reorder = [
        (first_row[path].id, wanted_positions[path])
        for path in keep
        if first_row[path].image_order != wanted_positions[path]
    ]

    return ReconciliationPlan(
        keep=keep,
        to_add=to_add,
        rows_to_delete=rows_to_delete,
        files_to_delete=files_to_delete,
        reorder=reorder,
        clear_all=not wanted and bool(old_images),
    )


async def reconcile_images(
    db: Session,
    media: MediaStorage,
    news_and_events_id: int,
    old_images: Sequence[StoredImage],
    source: ImageSource,
    retained: Iterable[Optional[str]] = (),
) -> ReconciliationResult:
    """
    Make the item's image rows equal ``source`` and clean up old files.

    Files named in ``retained`` are still referenced elsewhere on the item
    and are never deleted.
    """
    old_paths = [row.image_url for row in old_images]
    plan = plan_reconciliation(old_images, source.paths, retained)

    logger.info(
        f"Image update for news ID {news_and_events_id}",
        extra={
            "image_source": source.kind.value,
            "old_images": old_paths,
            "new_images": source.paths,
            "keep": plan.keep,
            "add": [path for path, _ in plan.to_add],
            "remove": plan.files_to_delete,
        },
    )

    for image_id in plan.rows_to_delete:
        news_and_events_images.delete(db, image_id)

    for image_id, position in plan.reorder:
        news_and_events_images.update_order(db, image_id, position)

    if plan.to_add:
        news_and_events_images.create_multiple(db, news_and_events_id, plan.to_add)

    if plan.clear_all:
        # No-op when the per-row deletes above already emptied the set
        news_and_events_images.delete_by_news_and_events_id(db, news_and_events_id)
        logger.info(f"Removed all images from news ID {news_and_events_id}")

    cleanup = await media.delete_files(plan.files_to_delete, NEWS)

    return ReconciliationResult(
        kept=plan.keep,
        added=[path for path, _ in plan.to_add],
        removed=plan.files_to_delete,
        cleanup=cleanup,
    )


def superseded_cover(
    old_cover: Optional[str],
    new_cover: Optional[str],
    gallery: Iterable[str] = (),
) -> Optional[str]:
    """
    The old cover reference to delete once ``new_cover`` is stored.

    None when the old cover is also one of the item's ``gallery`` paths.
    """
    if old_cover and old_cover != new_cover and old_cover not in set(gallery):
        return old_cover
    return None


async def delete_cover(media: MediaStorage, cover: Optional[str]) -> FileCleanupReport:
    if not cover:
        return FileCleanupReport()
    return await media.delete_files([cover], COVER)


def describe(result: FileCleanupReport) -> str:
    """Short human-readable summary used in response messages."""
    if not result.has_failures:
        return ""
    return f" ({len(result.failed)} of {result.attempted} files failed to delete: {json.dumps(result.failed)})"
