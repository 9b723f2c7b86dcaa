from typing import List, Optional
import logging

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.models.category import Category
from app.models.news_and_events import NewsAndEvents
from app.repositories import committing

logger = logging.getLogger(__name__)


def find_by_id(db: Session, category_id: int) -> Optional[Category]:
    return db.query(Category).filter(Category.id == category_id).first()


def find_by_slug(db: Session, slug: str) -> Optional[Category]:
    return db.query(Category).filter(Category.slug == slug).first()


def find_all(
    db: Session, status: Optional[str] = None, search: Optional[str] = None
) -> List[Category]:
    query = db.query(Category)

    if status:
        query = query.filter(Category.status == status)

    if search:
        term = f"%{search.lower()}%"
        query = query.filter(
            or_(
                func.lower(Category.name).like(term),
                func.lower(Category.description).like(term),
            )
        )

    return query.order_by(Category.name.asc()).all()


def create(
    db: Session,
    name: str,
    slug: str,
    description: Optional[str] = None,
    status: str = "active",
) -> Category:
    category = Category(name=name, slug=slug, description=description, status=status)
    with committing(db):
        db.add(category)
    db.refresh(category)
    return category


def update(db: Session, category_id: int, changes: dict) -> Optional[Category]:
    category = find_by_id(db, category_id)
    if category is None:
        return None
    if not changes:
        return category

    with committing(db):
        for key, value in changes.items():
            setattr(category, key, value)
    db.refresh(category)
    return category


def delete(db: Session, category_id: int) -> bool:
    category = find_by_id(db, category_id)
    if category is None:
        return False
    with committing(db):
        db.delete(category)
    return True


def count_news_and_events(db: Session, category_id: int) -> int:
    return (
        db.query(func.count(NewsAndEvents.id))
        .filter(NewsAndEvents.category_id == category_id)
        .scalar()
    )
