from typing import List, Optional
import logging

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from app.core.datetimes import to_storage_datetime
from app.models.news_and_events import NewsAndEvents
from app.repositories import committing

logger = logging.getLogger(__name__)

_COLUMNS = (
    "category_id",
    "title",
    "description",
    "location",
    "cover_image",
    "date_time",
    "status",
    "created_by",
)


def _require_int(value, name: str) -> int:
    # bool is an int subclass; reject it explicitly
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    return value


def _require_str(value, name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string, got {type(value).__name__}")
    return value


def _apply_filters(query, category_id=None, status=None, search=None, date_from=None, date_to=None):
    if category_id is not None:
        query = query.filter(
            NewsAndEvents.category_id == _require_int(category_id, "category_id")
        )

    if status is not None:
        query = query.filter(NewsAndEvents.status == _require_str(status, "status"))

    if search:
        term = f"%{_require_str(search, 'search').lower()}%"
        query = query.filter(
            or_(
                func.lower(NewsAndEvents.title).like(term),
                func.lower(NewsAndEvents.description).like(term),
                func.lower(NewsAndEvents.location).like(term),
            )
        )

    if date_from is not None:
        query = query.filter(NewsAndEvents.date_time >= to_storage_datetime(date_from))

    if date_to is not None:
        query = query.filter(NewsAndEvents.date_time <= to_storage_datetime(date_to))

    return query


def find_by_id(db: Session, item_id: int) -> Optional[NewsAndEvents]:
    return (
        db.query(NewsAndEvents)
        .options(joinedload(NewsAndEvents.category), joinedload(NewsAndEvents.creator))
        .filter(NewsAndEvents.id == item_id)
        .first()
    )


def find_all(
    db: Session,
    category_id: Optional[int] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[NewsAndEvents]:
    query = db.query(NewsAndEvents).options(
        joinedload(NewsAndEvents.category), joinedload(NewsAndEvents.creator)
    )
    query = _apply_filters(query, category_id, status, search, date_from, date_to)
    query = query.order_by(
        NewsAndEvents.date_time.desc(), NewsAndEvents.created_at.desc(), NewsAndEvents.id.desc()
    )

    if limit is not None:
        query = query.limit(_require_int(limit, "limit"))
        if offset:
            query = query.offset(_require_int(offset, "offset"))

    return query.all()


def count(
    db: Session,
    category_id: Optional[int] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> int:
    query = db.query(func.count(NewsAndEvents.id))
    query = _apply_filters(query, category_id, status, search, date_from, date_to)
    return query.scalar()


def create(db: Session, data: dict) -> NewsAndEvents:
    values = {key: data.get(key) for key in _COLUMNS}
    values["date_time"] = to_storage_datetime(values["date_time"])
    values["status"] = values["status"] or "active"

    item = NewsAndEvents(**values)
    with committing(db):
        db.add(item)

    logger.info(f"News and events created: {item.title} (ID: {item.id})")
    return find_by_id(db, item.id)


def update(db: Session, item_id: int, changes: dict) -> Optional[NewsAndEvents]:
    item = find_by_id(db, item_id)
    if item is None:
        return None

    changes = {key: value for key, value in changes.items() if key in _COLUMNS}
    if not changes:
        return item

    if "date_time" in changes:
        changes["date_time"] = to_storage_datetime(changes["date_time"])

    with committing(db):
        for key, value in changes.items():
            setattr(item, key, value)

    db.expire_all()
    return find_by_id(db, item_id)


def delete(db: Session, item_id: int) -> bool:
    with committing(db):
        deleted = (
            db.query(NewsAndEvents)
            .filter(NewsAndEvents.id == item_id)
            .delete(synchronize_session=False)
        )
    db.expire_all()
    return deleted > 0
