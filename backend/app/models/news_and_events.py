from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base


class NewsAndEvents(Base):
    __tablename__ = "news_and_events"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(
        Integer,
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    cover_image = Column(String(500), nullable=True)  # canonical path or external URL
    date_time = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="active", index=True)
    created_by = Column(
        Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    category = relationship("Category", back_populates="news_and_events")
    creator = relationship("Admin", back_populates="news_and_events")
    images = relationship(
        "NewsAndEventsImage",
        back_populates="news_and_events",
        passive_deletes=True,
    )


class NewsAndEventsImage(Base):
    __tablename__ = "news_and_events_images"

    id = Column(Integer, primary_key=True, index=True)
    news_and_events_id = Column(
        Integer,
        ForeignKey("news_and_events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    image_url = Column(String(500), nullable=False)
    image_order = Column(Integer, default=0, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    news_and_events = relationship("NewsAndEvents", back_populates="images")
