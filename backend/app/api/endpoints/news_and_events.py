from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile
from typing import Dict, List, Optional, Tuple
from app.api.validation import news_filters, parse_command
from app.core.auth import get_current_admin, CurrentAdmin
from app.core.database import get_db
from app.core.config import settings
from app.core.datetimes import STORAGE_FORMAT
from app.core.errors import ApiError, ErrorKind, ForeignKeyViolationError
from app.repositories import admins, categories, news_and_events, news_and_events_images
from app.schemas.common import format_response
from app.schemas.news_and_events import (
    NewsAndEvents as NewsAndEventsSchema,
    NewsAndEventsCreate,
    NewsAndEventsFilters,
    NewsAndEventsUpdate,
    Pagination,
)
from app.services.media_reconciler import (
    ImageSource,
    StoredImage,
    dedupe,
    delete_cover,
    describe,
    reconcile_images,
    superseded_cover,
)
from app.services.media_storage import (
    COVER,
    NEWS,
    FileCleanupReport,
    MediaStorage,
    UploadRejected,
    get_media_storage,
)
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_FOUND = "News and events not found"
INVALID_CATEGORY = "Invalid category ID"
FILE_FIELDS = ("cover_image", "images")


# Request parsing


async def read_payload(request: Request) -> Tuple[dict, Dict[str, List[UploadFile]]]:
    """
    Read a JSON or multipart/urlencoded body.

    Returns the plain fields and the uploaded files keyed by field name.
    Repeated form fields become lists.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        payload: dict = {}
        files: Dict[str, List[UploadFile]] = {}
        for key in set(form.keys()):
            values = form.getlist(key)
            uploads = [v for v in values if isinstance(v, UploadFile) and v.filename]
            texts = [v for v in values if isinstance(v, str)]
            field = key[:-2] if key.endswith("[]") else key
            if uploads:
                files[field] = uploads
            if texts:
                payload[field] = texts if len(texts) > 1 or key.endswith("[]") else texts[0]
        return payload, files

    body = await request.body()
    if not body:
        return {}, {}
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return payload, {}


def check_uploads(media: MediaStorage, files: Dict[str, List[UploadFile]]) -> None:
    covers = files.get("cover_image", [])
    gallery = files.get("images", [])
    unexpected = set(files) - set(FILE_FIELDS)
    if unexpected:
        raise UploadRejected(f"Unexpected file field: {sorted(unexpected)[0]}")
    if len(covers) > 1:
        raise UploadRejected("Only one cover image can be uploaded")
    if len(gallery) > settings.MAX_GALLERY_IMAGES:
        raise UploadRejected(
            f"Too many images. Maximum is {settings.MAX_GALLERY_IMAGES} images"
        )
    for upload in covers + gallery:
        media.check_upload(upload)


async def store_uploads(
    media: MediaStorage, files: Dict[str, List[UploadFile]], saved: List[str]
) -> Tuple[Optional[str], List[str]]:
    """Write uploads to disk, appending each stored path to ``saved``."""
    cover_path = None
    for upload in files.get("cover_image", []):
        cover_path = await media.save_upload(upload, COVER)
        saved.append(cover_path)

    image_paths = []
    for upload in files.get("images", []):
        path = await media.save_upload(upload, NEWS)
        saved.append(path)
        image_paths.append(path)
    return cover_path, image_paths


async def discard_uploads(media: MediaStorage, saved: List[str]) -> None:
    if saved:
        logger.info(f"Removing {len(saved)} uploads from a failed request")
        await media.delete_files(saved, NEWS)


# Response shaping


def serialize(item, media: MediaStorage, images: list) -> dict:
    image_paths = [media.to_relative_path(image.image_url, NEWS) for image in images]
    cover = media.to_relative_path(item.cover_image, COVER)
    data = NewsAndEventsSchema(
        id=item.id,
        category_id=item.category_id,
        title=item.title,
        description=item.description,
        location=item.location,
        cover_image=cover,
        cover_image_url=media.absolute_url(cover),
        date_time=item.date_time.strftime(STORAGE_FORMAT),
        status=item.status,
        created_by=item.created_by,
        created_at=item.created_at,
        updated_at=item.updated_at,
        category_name=item.category.name if item.category else None,
        category_slug=item.category.slug if item.category else None,
        created_by_name=item.creator.name if item.creator else None,
        images=image_paths,
        image_urls=[media.absolute_url(path) for path in image_paths],
    )
    return data.model_dump(mode="json")


def serialize_with_images(db: Session, item, media: MediaStorage) -> dict:
    images = news_and_events_images.find_by_news_and_events_id(db, item.id)
    return serialize(item, media, images)


def _list_response(db: Session, media: MediaStorage, filters: NewsAndEventsFilters, message: str) -> dict:
    criteria = filters.model_dump(include={"category_id", "status", "search", "date_from", "date_to"})
    total = news_and_events.count(db, **criteria)
    items = news_and_events.find_all(
        db, **criteria, limit=filters.limit, offset=filters.offset
    )
    return format_response(
        True,
        message,
        {
            "newsAndEvents": [serialize_with_images(db, item, media) for item in items],
            "pagination": Pagination.build(filters.page, filters.limit, total).model_dump(),
        },
    )


# Public routes


@router.get("/public")
def get_active_news_and_events(
    filters: NewsAndEventsFilters = Depends(news_filters),
    db: Session = Depends(get_db),
    media: MediaStorage = Depends(get_media_storage),
):
    """Active items only; a ``status`` query parameter is ignored."""
    filters = filters.model_copy(update={"status": "active"})
    return _list_response(db, media, filters, "Active news and events retrieved successfully")


@router.get("/public/{item_id}")
def get_active_news_and_events_by_id(
    item_id: int,
    db: Session = Depends(get_db),
    media: MediaStorage = Depends(get_media_storage),
):
    item = news_and_events.find_by_id(db, item_id)
    if item is None or item.status != "active":
        raise HTTPException(status_code=404, detail=NOT_FOUND)

    return format_response(
        True,
        "Active news and events retrieved successfully",
        {"newsAndEvents": serialize_with_images(db, item, media)},
    )


# Admin routes


@router.get("")
def get_all_news_and_events(
    filters: NewsAndEventsFilters = Depends(news_filters),
    db: Session = Depends(get_db),
    media: MediaStorage = Depends(get_media_storage),
    current_admin: CurrentAdmin = Depends(get_current_admin),
):
    return _list_response(db, media, filters, "News and events retrieved successfully")


@router.get("/{item_id}")
def get_news_and_events_by_id(
    item_id: int,
    db: Session = Depends(get_db),
    media: MediaStorage = Depends(get_media_storage),
    current_admin: CurrentAdmin = Depends(get_current_admin),
):
    item = news_and_events.find_by_id(db, item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)

    return format_response(
        True,
        "News and events retrieved successfully",
        {"newsAndEvents": serialize_with_images(db, item, media)},
    )


@router.post("", status_code=201)
async def create_news_and_events(
    request: Request,
    db: Session = Depends(get_db),
    media: MediaStorage = Depends(get_media_storage),
    current_admin: CurrentAdmin = Depends(get_current_admin),
):
    """
    Create an item from JSON or multipart data.

    ``cover_image`` and ``images`` may be uploaded files or URL/path values;
    uploaded files win when both are sent.
    """
    payload, files = await read_payload(request)
    for field in FILE_FIELDS:
        if field in files:
            payload.pop(field, None)

    command = parse_command(NewsAndEventsCreate, payload)

    try:
        check_uploads(media, files)
    except UploadRejected as e:
        raise ApiError(400, str(e), ErrorKind.UPLOAD)

    if categories.find_by_id(db, command.category_id) is None:
        raise HTTPException(status_code=404, detail="Category not found")

    created_by = current_admin.id if admins.find_by_id(db, current_admin.id) else None

    saved: List[str] = []
    try:
        uploaded_cover, uploaded_images = await store_uploads(media, files, saved)

        cover_image = uploaded_cover or media.to_relative_path(command.cover_image, COVER)
        if uploaded_images:
            image_paths = uploaded_images
        else:
            image_paths = [media.to_relative_path(ref, NEWS) for ref in command.images]
        image_paths = dedupe([path for path in image_paths if path])

        item = news_and_events.create(
            db,
            {
                "category_id": command.category_id,
                "title": command.title,
                "description": command.description,
                "location": command.location,
                "cover_image": cover_image,
                "date_time": command.date_time,
                "status": command.status,
                "created_by": created_by,
            },
        )
        if image_paths:
            news_and_events_images.create_multiple(db, item.id, image_paths)
    except UploadRejected as e:
        await discard_uploads(media, saved)
        raise ApiError(400, str(e), ErrorKind.UPLOAD)
    except ForeignKeyViolationError:
        await discard_uploads(media, saved)
        raise ApiError(400, INVALID_CATEGORY, ErrorKind.INVALID_REFERENCE)
    except Exception:
        await discard_uploads(media, saved)
        raise

    return JSONResponse(
        status_code=201,
        content=format_response(
            True,
            "News and events created successfully",
            {"newsAndEvents": serialize_with_images(db, item, media)},
        ),
    )


@router.put("/{item_id}")
async def update_news_and_events(
    item_id: int,
    request: Request,
    db: Session = Depends(get_db),
    media: MediaStorage = Depends(get_media_storage),
    current_admin: CurrentAdmin = Depends(get_current_admin),
):
    """
    Partial update. Sending ``images`` (files, a list, or empty/null) replaces
    the gallery; sending ``cover_image`` replaces or removes the cover.
    """
    payload, files = await read_payload(request)
    for field in FILE_FIELDS:
        if field in files:
            payload.pop(field, None)

    command = parse_command(NewsAndEventsUpdate, payload)

    try:
        check_uploads(media, files)
    except UploadRejected as e:
        raise ApiError(400, str(e), ErrorKind.UPLOAD)

    existing = news_and_events.find_by_id(db, item_id)
    if existing is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)

    if command.category_id is not None and categories.find_by_id(db, command.category_id) is None:
        raise HTTPException(status_code=404, detail="Category not found")

    # Snapshot before any mutation
    old_cover = existing.cover_image
    old_images = StoredImage.from_rows(
        news_and_events_images.find_by_news_and_events_id(db, item_id)
    )
    logger.info(
        f"Update request for news ID {item_id}",
        extra={"old_cover": old_cover, "old_images": [img.image_url for img in old_images]},
    )

    changes = command.column_changes()
    cover_sent = "cover_image" in files or "cover_image" in command.model_fields_set
    images_sent = "images" in files or "images" in command.model_fields_set

    saved: List[str] = []
    cleanup = FileCleanupReport()
    gallery = [image.image_url for image in old_images]
    try:
        uploaded_cover, uploaded_images = await store_uploads(media, files, saved)

        new_cover = old_cover
        if cover_sent:
            new_cover = uploaded_cover or media.to_relative_path(command.cover_image, COVER)
            changes["cover_image"] = new_cover

        item = news_and_events.update(db, item_id, changes)
        if item is None:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        if uploaded_cover:
            # The committed row now points at this file
            saved.remove(uploaded_cover)

        if images_sent:
            if uploaded_images:
                source = ImageSource.from_uploads(uploaded_images)
            else:
                source = ImageSource.from_references(command.images or [], media)
            result = await reconcile_images(
                db, media, item_id, old_images, source, retained=[new_cover]
            )
            cleanup = cleanup.merge(result.cleanup)
            gallery = result.kept + result.added
    except UploadRejected as e:
        await discard_uploads(media, saved)
        raise ApiError(400, str(e), ErrorKind.UPLOAD)
    except ForeignKeyViolationError:
        await discard_uploads(media, saved)
        raise ApiError(400, INVALID_CATEGORY, ErrorKind.INVALID_REFERENCE)
    except Exception:
        await discard_uploads(media, saved)
        raise

    if cover_sent:
        stale_cover = superseded_cover(old_cover, new_cover, gallery)
        if stale_cover:
            logger.info(f"Cover image replaced. Deleting old cover image: {stale_cover}")
            cleanup = cleanup.merge(await delete_cover(media, stale_cover))

    logger.info(f"News and events updated: ID {item_id}")

    data = {"newsAndEvents": serialize_with_images(db, item, media)}
    message = "News and events updated successfully"
    if cleanup.attempted:
        data["fileCleanup"] = cleanup.as_dict()
    message += describe(cleanup)

    return format_response(True, message, data)


@router.delete("/{item_id}")
async def delete_news_and_events(
    item_id: int,
    db: Session = Depends(get_db),
    media: MediaStorage = Depends(get_media_storage),
    current_admin: CurrentAdmin = Depends(get_current_admin),
):
    """Delete an item, its image rows (cascade) and the files behind them."""
    item = news_and_events.find_by_id(db, item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)

    cover = item.cover_image
    image_paths = [
        image.image_url
        for image in news_and_events_images.find_by_news_and_events_id(db, item_id)
    ]

    if not news_and_events.delete(db, item_id):
        raise HTTPException(status_code=400, detail="Failed to delete news and events")

    # A path used as both cover and gallery image is deleted once
    files = dedupe(
        [media.to_relative_path(cover, COVER)]
        + [media.to_relative_path(path, NEWS) for path in image_paths]
    )
    cleanup = await media.delete_files(files, NEWS)

    logger.info(f"News and events deleted: ID {item_id}")

    message = "News and events deleted successfully"
    message += describe(cleanup)
    data = {"fileCleanup": cleanup.as_dict()} if cleanup.attempted else None

    return format_response(True, message, data)
