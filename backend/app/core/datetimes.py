"""
Normalisation of client supplied date/time values into the fixed-width
``YYYY-MM-DD HH:MM:SS`` form stored in ``news_and_events.date_time``.
"""

from datetime import datetime, timezone
from typing import Any

STORAGE_FORMAT = "%Y-%m-%d %H:%M:%S"


class DateTimeError(ValueError):
    """Base class for rejected date/time input."""


class EmptyDateTimeError(DateTimeError):
    pass


class DateTimeTypeError(DateTimeError):
    pass


class InvalidDateTimeError(DateTimeError):
    pass


def format_datetime_for_storage(value: Any) -> str:
    """
    Convert an ISO 8601 string (or a datetime) into ``YYYY-MM-DD HH:MM:SS``.

    Timezone-aware input is converted to UTC before the offset is dropped.

    Raises:
        EmptyDateTimeError: value is an empty/blank string
        DateTimeTypeError: value is neither a string nor a datetime
        InvalidDateTimeError: value does not parse into a calendar date/time
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        if not isinstance(value, str):
            raise DateTimeTypeError(
                f"Date and time must be a string, got {type(value).__name__}"
            )
        raw = value.strip()
        if not raw:
            raise EmptyDateTimeError("Date and time must not be empty")
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            raise InvalidDateTimeError(f"Invalid datetime format: {value}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed.strftime(STORAGE_FORMAT)


def to_storage_datetime(value: Any) -> datetime:
    """Normalise ``value`` and return it as a naive datetime for binding."""
    return datetime.strptime(format_datetime_for_storage(value), STORAGE_FORMAT)
