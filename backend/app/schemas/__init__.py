from app.schemas.common import Envelope, format_response
from app.schemas.admin import Admin, AdminLogin, AdminRegister, AdminProfileUpdate
from app.schemas.category import Category, CategoryCreate, CategoryUpdate
from app.schemas.news_and_events import (
    NewsAndEvents,
    NewsAndEventsCreate,
    NewsAndEventsUpdate,
    NewsAndEventsFilters,
    Pagination,
)

__all__ = [
    "Envelope",
    "format_response",
    "Admin",
    "AdminLogin",
    "AdminRegister",
    "AdminProfileUpdate",
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "NewsAndEvents",
    "NewsAndEventsCreate",
    "NewsAndEventsUpdate",
    "NewsAndEventsFilters",
    "Pagination",
]
