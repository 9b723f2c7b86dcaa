from fastapi import HTTPException, status, Request
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from pydantic import BaseModel
from app.core.config import settings
from app.core.logging_config import log_security_event, get_client_ip
from typing import Optional
from datetime import datetime, timedelta, timezone
import logging
import uuid

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ADMIN_ROLE = "admin"


class TokenError(Exception):
    """Raised by decode_token; ``reason`` is "expired" or "invalid"."""

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


class CurrentAdmin(BaseModel):
    """Identity decoded from a verified bearer token."""

    id: int
    email: str
    name: str
    role: str = ADMIN_ROLE


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(admin, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token for an admin.

    Args:
        admin: Object with ``id``, ``email`` and ``name`` attributes
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)

    to_encode = {
        # JWT spec requires sub to be a string
        "sub": str(admin.id),
        "id": admin.id,
        "email": admin.email,
        "name": admin.name,
        "role": ADMIN_ROLE,
        "type": "access",
        "exp": now + expires_delta,
        "iat": now,
        "jti": str(uuid.uuid4()),
    }

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and validate a JWT access token.

    Raises:
        TokenError: reason "expired" or "invalid"
    """
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except ExpiredSignatureError:
        raise TokenError("expired", "Token has expired.")
    except JWTError as e:
        raise TokenError("invalid", f"Invalid token: {e}")

    if payload.get("type") != "access" or payload.get("role") != ADMIN_ROLE:
        raise TokenError("invalid", "Token is not an admin access token")
    return payload


def _reject(request: Request, reason: str, detail: str, log_message: str) -> HTTPException:
    log_security_event(
        event_type=f"auth.token.{reason}",
        message=f"Unauthorized access attempt: {request.method} {request.url.path} - {log_message}",
        level=logging.WARNING,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        request_method=request.method,
        request_path=request.url.path,
        event_category="authentication",
    )
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_admin(request: Request) -> CurrentAdmin:
    """Authentication gate for admin-only routes."""
    auth_header = request.headers.get("Authorization")

    if not auth_header:
        raise _reject(
            request,
            "missing",
            "No token provided. Authorization header required.",
            "No Authorization header",
        )

    parts = auth_header.split(" ")
    token = parts[1].strip() if len(parts) > 1 else ""
    if not token:
        raise _reject(
            request,
            "malformed",
            "Token not found in Authorization header.",
            "Malformed Authorization header",
        )

    try:
        payload = decode_token(token)
    except TokenError as e:
        if e.reason == "expired":
            raise _reject(request, "expired", "Token has expired.", e.message)
        raise _reject(request, "invalid", "Invalid token.", e.message)

    try:
        admin = CurrentAdmin(
            id=int(payload.get("id", payload.get("sub"))),
            email=payload.get("email", ""),
            name=payload.get("name", ""),
        )
    except (TypeError, ValueError):
        raise _reject(request, "invalid", "Invalid token.", "Token is missing identity claims")

    request.state.admin = admin
    return admin
