from .admin import Admin
from .category import Category
from .news_and_events import NewsAndEvents, NewsAndEventsImage

__all__ = [
    "Admin",
    "Category",
    "NewsAndEvents",
    "NewsAndEventsImage",
]
