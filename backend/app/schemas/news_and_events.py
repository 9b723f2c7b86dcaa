from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
from typing import List, Literal, Optional, Any
import json

from app.core.datetimes import DateTimeError, format_datetime_for_storage

NewsStatus = Literal["active", "inactive"]

MAX_IMAGE_REFERENCE_LENGTH = 500


def parse_image_list(value: Any) -> List[str]:
    """
    Accept the shapes clients send for ``images``.

    ``None`` or ``""`` means "remove all"; a JSON-encoded array is decoded; any
    other string is a single reference.
    """
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            return [value]
        if isinstance(decoded, list):
            value = decoded
        elif isinstance(decoded, str):
            return [decoded] if decoded else []
        else:
            raise ValueError(
                "Images can be uploaded as files, provided as array of URLs, or JSON string array"
            )
    if not isinstance(value, (list, tuple)):
        raise ValueError(
            "Images can be uploaded as files, provided as array of URLs, or JSON string array"
        )
    images = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError("Each image must be a URL or path string")
        item = item.strip()
        if not item:
            continue
        if len(item) > MAX_IMAGE_REFERENCE_LENGTH:
            raise ValueError("Image URL must not exceed 500 characters")
        images.append(item)
    return images


def check_cover_image(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(
            "Cover image must be a valid URL (max 500 characters) or uploaded as file"
        )
    value = value.strip()
    if value == "":
        return None
    if len(value) > MAX_IMAGE_REFERENCE_LENGTH:
        raise ValueError(
            "Cover image must be a valid URL (max 500 characters) or uploaded as file"
        )
    if not (value.startswith(("http://", "https://", "/")) and len(value) > 1):
        raise ValueError(
            "Cover image must be a valid URL (max 500 characters) or uploaded as file"
        )
    return value


def check_date_time(value: Any) -> str:
    try:
        return format_datetime_for_storage(value)
    except DateTimeError as e:
        raise ValueError(str(e))


class _NewsAndEventsFields(BaseModel):
    @field_validator("title", "description", "location", mode="before", check_fields=False)
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("cover_image", mode="before", check_fields=False)
    @classmethod
    def cover_image_reference(cls, v):
        return check_cover_image(v)

    @field_validator("images", mode="before", check_fields=False)
    @classmethod
    def image_references(cls, v):
        return parse_image_list(v)

    @field_validator("date_time", mode="before", check_fields=False)
    @classmethod
    def normalize_date_time(cls, v):
        if v is None:
            return v
        return check_date_time(v)


class NewsAndEventsCreate(_NewsAndEventsFields):
    category_id: int = Field(gt=0)
    title: str = Field(min_length=3, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    location: Optional[str] = Field(default=None, max_length=255)
    cover_image: Optional[str] = None
    date_time: str
    status: NewsStatus = "active"
    images: List[str] = []


class NewsAndEventsUpdate(_NewsAndEventsFields):
    """Partial update; use ``model_fields_set`` to see what was sent."""

    category_id: Optional[int] = Field(default=None, gt=0)
    title: Optional[str] = Field(default=None, min_length=3, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    location: Optional[str] = Field(default=None, max_length=255)
    cover_image: Optional[str] = None
    date_time: Optional[str] = None
    status: Optional[NewsStatus] = None
    images: Optional[List[str]] = None

    @model_validator(mode="after")
    def reject_nulls(self):
        for name in ("title", "date_time", "status", "category_id"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def column_changes(self) -> dict:
        """Fields sent by the client that map directly onto columns."""
        data = self.model_dump(exclude_unset=True)
        data.pop("images", None)
        data.pop("cover_image", None)
        return data


class NewsAndEventsFilters(BaseModel):
    """Validated list filters; ``limit``/``offset`` are plain ints."""

    page: int = 1
    limit: int = 10
    category_id: Optional[int] = Field(default=None, gt=0)
    status: Optional[NewsStatus] = None
    search: Optional[str] = Field(default=None, max_length=255)
    date_from: Optional[str] = None
    date_to: Optional[str] = None

    @field_validator("page")
    @classmethod
    def page_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Page must be greater than 0")
        return v

    @field_validator("limit")
    @classmethod
    def limit_range(cls, v: int) -> int:
        if v < 1 or v > 100:
            raise ValueError("Limit must be between 1 and 100")
        return v

    @field_validator("search", mode="before")
    @classmethod
    def blank_search(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def normalize_bounds(cls, v):
        if v is None:
            return v
        return check_date_time(v)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalItems: int
    itemsPerPage: int
    hasNext: bool
    hasPrev: bool
    nextPage: Optional[int] = None
    prevPage: Optional[int] = None

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = (total + limit - 1) // limit
        has_next = page < total_pages
        has_prev = page > 1
        return cls(
            currentPage=page,
            totalPages=total_pages,
            totalItems=total,
            itemsPerPage=limit,
            hasNext=has_next,
            hasPrev=has_prev,
            nextPage=page + 1 if has_next else None,
            prevPage=page - 1 if has_prev else None,
        )


class NewsAndEvents(BaseModel):
    id: int
    category_id: int
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    cover_image: Optional[str] = None
    cover_image_url: Optional[str] = None
    date_time: str
    status: str
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    category_name: Optional[str] = None
    category_slug: Optional[str] = None
    created_by_name: Optional[str] = None
    images: List[str] = []
    image_urls: List[str] = []
