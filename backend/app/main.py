from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from app.core.config import settings
from app.core.database import open_database
from app.core.logging_config import (
    setup_logging,
    CorrelationIdMiddleware,
    log_security_event,
)
from app.core.rate_limit import limiter
from app.api.errors import register_exception_handlers
from app.api.endpoints import admin, categories, news_and_events
from app.schemas.common import format_response
from app.services.media_storage import MediaStorage
from slowapi.middleware import SlowAPIMiddleware
import logging

# Configure structured JSON logging
security_logger = setup_logging()
logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        if settings.ENABLE_HSTS and settings.is_production:
            response.headers["Strict-Transport-Security"] = (
                f"max-age={settings.HSTS_MAX_AGE}; includeSubDomains"
            )

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Uploaded images are served from this origin and embedded elsewhere
        response.headers["Cross-Origin-Resource-Policy"] = "cross-origin"

        return response


def create_media_storage() -> MediaStorage:
    media = MediaStorage(
        settings.UPLOAD_ROOT,
        base_url=settings.BASE_URL,
        url_prefix=settings.UPLOAD_URL_PREFIX,
        max_file_size=settings.MAX_IMAGE_SIZE,
        allowed_types=settings.ALLOWED_IMAGE_TYPES,
    )
    media.ensure_directories()
    return media


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting newsdesk backend...")

    database = open_database(settings)
    database.create_all()
    database.ping()
    logger.info("Database connected successfully")
    app.state.database = database

    yield

    logger.info("Shutting down newsdesk backend...")
    database.dispose()


app = FastAPI(
    title="Newsdesk",
    description="Admin-managed categories and news/events with image galleries",
    version="1.0.0",
    lifespan=lifespan,
)

# Media storage is needed before the first request and by the static mount
app.state.media_storage = create_media_storage()

# Add correlation ID middleware (first, so all logs have correlation IDs)
app.add_middleware(CorrelationIdMiddleware)

# Add rate limiting
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# Add security headers middleware
app.add_middleware(SecurityHeadersMiddleware)

register_exception_handlers(app)

log_security_event(
    event_type="app.startup",
    message=f"Newsdesk backend starting (production={settings.is_production})",
    event_category="system",
    production=settings.is_production,
    debug=settings.DEBUG,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(categories.router, prefix="/api/categories", tags=["categories"])
app.include_router(
    news_and_events.router, prefix="/api/news-and-events", tags=["news-and-events"]
)

# Serve uploaded images
upload_path = Path(settings.UPLOAD_ROOT)
upload_path.mkdir(parents=True, exist_ok=True)
app.mount(
    "/" + settings.UPLOAD_URL_PREFIX.strip("/"),
    StaticFiles(directory=str(upload_path)),
    name="uploads",
)


@app.get("/")
def root():
    return format_response(
        True,
        "Newsdesk API",
        {
            "version": "1.0.0",
            "endpoints": {
                "admin": "/api/admin",
                "categories": "/api/categories",
                "newsAndEvents": "/api/news-and-events",
                "health": "/api/health",
            },
        },
    )


@app.get("/api/health")
def health_check():
    return format_response(
        True,
        "Server is running",
        {"timestamp": datetime.now(timezone.utc).isoformat()},
    )
