from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Literal, Optional

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"

CategoryStatus = Literal["active", "inactive"]


class CategoryBase(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    slug: str = Field(min_length=2, max_length=255, pattern=SLUG_PATTERN)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: CategoryStatus = "active"

    @field_validator("name", "slug", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    slug: Optional[str] = Field(
        default=None, min_length=2, max_length=255, pattern=SLUG_PATTERN
    )
    description: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[CategoryStatus] = None

    @field_validator("name", "slug", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class Category(CategoryBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
