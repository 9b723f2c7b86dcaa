from typing import Iterable, List
import logging

from sqlalchemy.orm import Session

from app.models.news_and_events import NewsAndEventsImage
from app.repositories import committing

logger = logging.getLogger(__name__)


def find_by_news_and_events_id(db: Session, news_and_events_id: int) -> List[NewsAndEventsImage]:
    return (
        db.query(NewsAndEventsImage)
        .filter(NewsAndEventsImage.news_and_events_id == news_and_events_id)
        .order_by(
            NewsAndEventsImage.image_order.asc(),
            NewsAndEventsImage.created_at.asc(),
            NewsAndEventsImage.id.asc(),
        )
        .all()
    )


def create(db: Session, news_and_events_id: int, image_url: str, image_order: int = 0) -> NewsAndEventsImage:
    image = NewsAndEventsImage(
        news_and_events_id=news_and_events_id,
        image_url=image_url,
        image_order=image_order,
    )
    with committing(db):
        db.add(image)
    db.refresh(image)
    logger.info(f"Image added to news and events {news_and_events_id}: {image_url}")
    return image


def create_multiple(db: Session, news_and_events_id: int, images: Iterable) -> List[NewsAndEventsImage]:
    """Insert images; each entry is a path or an ``(path, order)`` pair."""
    created = []
    with committing(db):
        for index, entry in enumerate(images):
            if isinstance(entry, tuple):
                image_url, image_order = entry
            else:
                image_url, image_order = entry, index
            image = NewsAndEventsImage(
                news_and_events_id=news_and_events_id,
                image_url=image_url,
                image_order=image_order,
            )
            db.add(image)
            created.append(image)
    for image in created:
        db.refresh(image)
    logger.info(f"Added {len(created)} images to news and events {news_and_events_id}")
    return created


def update_order(db: Session, image_id: int, image_order: int) -> bool:
    with committing(db):
        updated = (
            db.query(NewsAndEventsImage)
            .filter(NewsAndEventsImage.id == image_id)
            .update({"image_order": image_order}, synchronize_session=False)
        )
    return updated > 0


def delete(db: Session, image_id: int) -> bool:
    with committing(db):
        deleted = (
            db.query(NewsAndEventsImage)
            .filter(NewsAndEventsImage.id == image_id)
            .delete(synchronize_session=False)
        )
    return deleted > 0


def delete_by_news_and_events_id(db: Session, news_and_events_id: int) -> int:
    with committing(db):
        deleted = (
            db.query(NewsAndEventsImage)
            .filter(NewsAndEventsImage.news_and_events_id == news_and_events_id)
            .delete(synchronize_session=False)
        )
    return deleted
