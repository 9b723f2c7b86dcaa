from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Literal, Optional
from app.core.database import get_db
from app.core.auth import get_current_admin, CurrentAdmin
from app.core.errors import ApiError, DuplicateKeyError, ErrorKind, ForeignKeyViolationError
from app.repositories import categories
from app.schemas.category import (
    Category as CategorySchema,
    CategoryCreate,
    CategoryUpdate,
)
from app.schemas.common import format_response
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

DUPLICATE_SLUG = "Category with this slug already exists"
CATEGORY_IN_USE = "Cannot delete category with associated news and events"


def _serialize(category) -> dict:
    return CategorySchema.model_validate(category).model_dump(mode="json")


def _list_categories(db: Session, status: Optional[str], search: Optional[str]) -> dict:
    found = categories.find_all(db, status=status, search=search)
    return format_response(
        True,
        "Categories retrieved successfully",
        {"categories": [_serialize(category) for category in found]},
    )


def _get_category(db: Session, category_id: int) -> dict:
    category = categories.find_by_id(db, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return format_response(
        True, "Category retrieved successfully", {"category": _serialize(category)}
    )


# Public reads


@router.get("/user")
@router.get("/user/", include_in_schema=False)
def get_public_categories(
    status: Optional[Literal["active", "inactive"]] = Query(None),
    search: Optional[str] = Query(None, max_length=255),
    db: Session = Depends(get_db),
):
    return _list_categories(db, status, search)


@router.get("/user/{category_id}")
def get_public_category(category_id: int, db: Session = Depends(get_db)):
    return _get_category(db, category_id)


# Admin routes


@router.get("")
def get_categories(
    status: Optional[Literal["active", "inactive"]] = Query(None),
    search: Optional[str] = Query(None, max_length=255),
    db: Session = Depends(get_db),
    current_admin: CurrentAdmin = Depends(get_current_admin),
):
    """Get all categories, optionally filtered by status or a search term."""
    return _list_categories(db, status, search)


@router.get("/{category_id}")
def get_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_admin: CurrentAdmin = Depends(get_current_admin),
):
    return _get_category(db, category_id)


@router.post("", status_code=201)
def create_category(
    category: CategoryCreate,
    db: Session = Depends(get_db),
    current_admin: CurrentAdmin = Depends(get_current_admin),
):
    """Create a category. Slugs are unique across all categories."""
    if categories.find_by_slug(db, category.slug):
        raise ApiError(400, DUPLICATE_SLUG, ErrorKind.CONFLICT)

    try:
        db_category = categories.create(db, **category.model_dump())
    except DuplicateKeyError:
        raise ApiError(400, DUPLICATE_SLUG, ErrorKind.CONFLICT)

    logger.info(f"Category created: {db_category.name} (ID: {db_category.id})")

    return JSONResponse(
        status_code=201,
        content=format_response(
            True, "Category created successfully", {"category": _serialize(db_category)}
        ),
    )


@router.put("/{category_id}")
def update_category(
    category_id: int,
    category_update: CategoryUpdate,
    db: Session = Depends(get_db),
    current_admin: CurrentAdmin = Depends(get_current_admin),
):
    category = categories.find_by_id(db, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    update_data = category_update.model_dump(exclude_unset=True)
    # name/slug/status are NOT NULL columns
    for key in ("name", "slug", "status"):
        if key in update_data and update_data[key] is None:
            update_data.pop(key)

    new_slug = update_data.get("slug")
    if new_slug and new_slug != category.slug and categories.find_by_slug(db, new_slug):
        raise ApiError(400, DUPLICATE_SLUG, ErrorKind.CONFLICT)

    try:
        category = categories.update(db, category_id, update_data)
    except DuplicateKeyError:
        raise ApiError(400, DUPLICATE_SLUG, ErrorKind.CONFLICT)

    logger.info(f"Category updated: ID {category_id}")

    return format_response(
        True, "Category updated successfully", {"category": _serialize(category)}
    )


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_admin: CurrentAdmin = Depends(get_current_admin),
):
    """Delete a category. Refused while news and events still reference it."""
    category = categories.find_by_id(db, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    if categories.count_news_and_events(db, category_id) > 0:
        raise ApiError(400, CATEGORY_IN_USE, ErrorKind.CONFLICT)

    try:
        deleted = categories.delete(db, category_id)
    except ForeignKeyViolationError:
        raise ApiError(400, CATEGORY_IN_USE, ErrorKind.CONFLICT)

    if not deleted:
        raise HTTPException(status_code=400, detail="Failed to delete category")

    logger.info(f"Category deleted: ID {category_id}")

    return format_response(True, "Category deleted successfully")
