"""
Request validation helpers shared by the endpoints.

Every rejected request answers 400 with the envelope
``{"success": false, "message": "Validation failed", "data": {"errors": [...]}}``.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

from fastapi import HTTPException, Query
from pydantic import BaseModel, ValidationError

from app.schemas.news_and_events import NewsAndEventsFilters

ModelT = TypeVar("ModelT", bound=BaseModel)

_VALUE_ERROR_PREFIX = "Value error, "


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into ``{field, message}`` pairs."""
    formatted = []
    for error in errors:
        location = [
            str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")
        ]
        message = str(error.get("msg", "Invalid value"))
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        formatted.append({"field": ".".join(location) or "request", "message": message})
    return formatted


def validation_failed(errors: List[Dict[str, str]], message: str = "Validation failed") -> HTTPException:
    return HTTPException(status_code=400, detail={"message": message, "errors": errors})


def parse_command(model: Type[ModelT], payload: Dict[str, Any]) -> ModelT:
    """Validate a raw request payload into a typed command object."""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise validation_failed(format_validation_errors(e.errors()))


def news_filters(
    page: int = Query(1, description="1-indexed page number"),
    limit: int = Query(10, description="Items per page (1-100)"),
    category_id: Optional[int] = Query(None, description="Category ID filter"),
    status: Optional[str] = Query(None, description="active or inactive"),
    search: Optional[str] = Query(None, description="Matches title, description or location"),
    date_from: Optional[str] = Query(None, description="Inclusive lower bound on date_time"),
    date_to: Optional[str] = Query(None, description="Inclusive upper bound on date_time"),
) -> NewsAndEventsFilters:
    """Query parameters for news/events listings, validated before any query."""
    filters = parse_command(
        NewsAndEventsFilters,
        {
            "page": page,
            "limit": limit,
            "category_id": category_id,
            "status": status,
            "search": search,
            "date_from": date_from,
            "date_to": date_to,
        },
    )
    return filters
