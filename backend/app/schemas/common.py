from pydantic import BaseModel
from typing import Any, Optional


class Envelope(BaseModel):
    """Uniform response shape used by every endpoint."""

    success: bool
    message: str
    data: Optional[Any] = None


def format_response(success: bool, message: str, data: Any = None) -> dict:
    return Envelope(success=success, message=message, data=data).model_dump()
