"""
Pytest configuration and fixtures for the newsdesk backend tests.
"""

import os
import tempfile

# Settings are read at import time, so the environment must be in place first
os.environ.setdefault("SECRET_KEY", "test_secret_key_for_testing_only")
os.environ.setdefault("POSTGRES_PASSWORD", "test_password")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BASE_URL", "http://localhost:8000")
os.environ.setdefault("UPLOAD_ROOT", tempfile.mkdtemp(prefix="newsdesk-uploads-"))

import pytest
from datetime import datetime
from typing import Generator
from sqlalchemy.orm import Session
from fastapi.testclient import TestClient

from app.core.database import Database, get_db
from app.core.auth import create_access_token
from app.core.rate_limit import limiter
from app.models.admin import Admin
from app.models.category import Category
from app.models.news_and_events import NewsAndEvents, NewsAndEventsImage
from app.repositories import admins
from app.services.media_storage import MediaStorage


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite://"
TEST_BASE_URL = "http://localhost:8000"

ADMIN_PASSWORD = "Secret123"

# Signature and IHDR chunk of a 1x1 RGB PNG
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00\x90wS\xde"
)


@pytest.fixture(scope="function")
def database() -> Generator[Database, None, None]:
    """Create a test Database with all tables."""
    database = Database(TEST_DATABASE_URL)
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture(scope="function")
def db_session(database) -> Generator[Session, None, None]:
    """Create a test database session."""
    session = database.new_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def media_storage(tmp_path) -> MediaStorage:
    """MediaStorage rooted in a per-test temporary directory."""
    media = MediaStorage(str(tmp_path / "uploads"), base_url=TEST_BASE_URL)
    media.ensure_directories()
    return media


@pytest.fixture(scope="function")
def test_app(database, db_session, media_storage):
    """Create a FastAPI test app without lifespan events."""
    from fastapi import FastAPI
    from app.api.endpoints import admin, categories, news_and_events
    from app.api.errors import register_exception_handlers

    # Create app without lifespan to avoid event loop issues
    test_app = FastAPI(title="Newsdesk - Test", version="1.0.0")
    test_app.state.database = database
    test_app.state.media_storage = media_storage
    test_app.state.limiter = limiter

    register_exception_handlers(test_app)

    test_app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
    test_app.include_router(
        categories.router, prefix="/api/categories", tags=["categories"]
    )
    test_app.include_router(
        news_and_events.router, prefix="/api/news-and-events", tags=["news-and-events"]
    )

    # Override database dependency
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    test_app.dependency_overrides[get_db] = override_get_db

    return test_app


@pytest.fixture(scope="function")
def client(test_app) -> TestClient:
    """Create a test client without entering context manager."""
    return TestClient(test_app, raise_server_exceptions=False)


@pytest.fixture(scope="function")
def test_admin(db_session) -> Admin:
    """Create a test admin."""
    return admins.create(db_session, "admin@example.com", ADMIN_PASSWORD, "Test Admin")


@pytest.fixture(scope="function")
def auth_headers(test_admin) -> dict:
    """Create authentication headers for test requests."""
    return {"Authorization": f"Bearer {create_access_token(test_admin)}"}


@pytest.fixture(scope="function")
def test_category(db_session) -> Category:
    """Create a test category."""
    category = Category(
        name="News",
        slug="news",
        description="Campus news and announcements",
        status="active",
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture(scope="function")
def make_news(db_session, test_category, test_admin):
    """Factory inserting a news/events row with optional gallery paths."""

    def _make(
        title="Open Day",
        status="active",
        date_time=datetime(2025, 3, 1, 10, 0, 0),
        cover_image=None,
        images=(),
        category=None,
    ) -> NewsAndEvents:
        item = NewsAndEvents(
            category_id=(category or test_category).id,
            title=title,
            description=f"Description of {title}",
            location="Main Hall",
            cover_image=cover_image,
            date_time=date_time,
            status=status,
            created_by=test_admin.id,
        )
        db_session.add(item)
        db_session.commit()
        for order, path in enumerate(images):
            db_session.add(
                NewsAndEventsImage(
                    news_and_events_id=item.id, image_url=path, image_order=order
                )
            )
        db_session.commit()
        db_session.refresh(item)
        return item

    return _make


@pytest.fixture
def stored_file(media_storage):
    """Write a placeholder file behind a canonical path and return the path."""

    def _store(relative_path: str) -> str:
        path = media_storage.file_path(relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\x89PNG\r\n\x1a\nplaceholder")
        return relative_path

    return _store


@pytest.fixture
def png_upload():
    """Multipart file tuple for TestClient uploads."""

    def _upload(name: str = "photo.png", content_type: str = "image/png", size: int = 64):
        return (name, PNG_BYTES + b"\x00" * size, content_type)

    return _upload
