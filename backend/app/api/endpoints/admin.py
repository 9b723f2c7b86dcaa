from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.auth import create_access_token, get_current_admin, CurrentAdmin
from app.core.errors import ApiError, DuplicateKeyError, ErrorKind
from app.core.logging_config import log_security_event, get_client_ip
from app.core.rate_limit import limiter
from app.repositories import admins
from app.schemas.admin import (
    Admin as AdminSchema,
    AdminLogin,
    AdminRegister,
    AdminProfileUpdate,
)
from app.schemas.common import format_response
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def _serialize(admin) -> dict:
    return AdminSchema.model_validate(admin).model_dump(mode="json")


@router.post("/login")
@limiter.limit("10/minute")
async def login(request: Request, credentials: AdminLogin, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token."""
    client_ip = get_client_ip(request)
    admin = admins.find_by_email(db, credentials.email)

    if admin is None or not admins.verify_password(admin, credentials.password):
        log_security_event(
            event_type="auth.login.failure",
            message=f"Failed login attempt for {credentials.email}",
            level=logging.WARNING,
            email=credentials.email,
            ip_address=client_ip,
            user_agent=request.headers.get("user-agent"),
            request_method="POST",
            request_path=request.url.path,
            event_category="authentication",
        )
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_access_token(admin)

    log_security_event(
        event_type="auth.login.success",
        message="Admin logged in successfully",
        admin_id=str(admin.id),
        email=admin.email,
        ip_address=client_ip,
        user_agent=request.headers.get("user-agent"),
        request_method="POST",
        request_path=request.url.path,
        event_category="authentication",
    )

    return format_response(
        True, "Login successful", {"admin": _serialize(admin), "token": token}
    )


@router.post("/register", status_code=201)
@limiter.limit("10/minute")
async def register(request: Request, payload: AdminRegister, db: Session = Depends(get_db)):
    """Create an admin account and return it with a token."""
    if admins.find_by_email(db, payload.email):
        raise ApiError(400, "Admin with this email already exists", ErrorKind.CONFLICT)

    try:
        admin = admins.create(db, payload.email, payload.password, payload.name)
    except DuplicateKeyError:
        # Lost a race with a concurrent registration
        raise ApiError(400, "Admin with this email already exists", ErrorKind.CONFLICT)

    token = create_access_token(admin)

    log_security_event(
        event_type="auth.admin.created",
        message="Admin account registered",
        admin_id=str(admin.id),
        email=admin.email,
        ip_address=get_client_ip(request),
        event_category="authentication",
    )

    return JSONResponse(
        status_code=201,
        content=format_response(
            True,
            "Admin registered successfully",
            {"admin": _serialize(admin), "token": token},
        ),
    )


@router.get("/profile")
def get_profile(
    db: Session = Depends(get_db),
    current_admin: CurrentAdmin = Depends(get_current_admin),
):
    admin = admins.find_by_id(db, current_admin.id)
    if admin is None:
        raise HTTPException(status_code=404, detail="Admin not found")

    return format_response(True, "Profile retrieved successfully", {"admin": _serialize(admin)})


@router.put("/profile")
def update_profile(
    request: Request,
    payload: AdminProfileUpdate,
    db: Session = Depends(get_db),
    current_admin: CurrentAdmin = Depends(get_current_admin),
):
    """Update name and/or password. The email cannot be changed here."""
    admin = admins.update(
        db, current_admin.id, name=payload.name, password=payload.password
    )
    if admin is None:
        raise HTTPException(status_code=404, detail="Admin not found")

    log_security_event(
        event_type="auth.admin.profile_updated",
        message=f"Admin profile updated: {admin.id}",
        admin_id=str(admin.id),
        email=admin.email,
        ip_address=get_client_ip(request),
        event_category="account",
        password_changed=payload.password is not None,
    )

    return format_response(True, "Profile updated successfully", {"admin": _serialize(admin)})


@router.get("/all")
def get_all_admins(
    db: Session = Depends(get_db),
    current_admin: CurrentAdmin = Depends(get_current_admin),
):
    all_admins = [_serialize(admin) for admin in admins.find_all(db)]
    return format_response(True, "Admins retrieved successfully", {"admins": all_admins})
