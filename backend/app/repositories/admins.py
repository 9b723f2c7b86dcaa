from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from app.core.auth import hash_password, verify_password as _verify_password
from app.models.admin import Admin
from app.repositories import committing

logger = logging.getLogger(__name__)


def find_by_id(db: Session, admin_id: int) -> Optional[Admin]:
    return db.query(Admin).filter(Admin.id == admin_id).first()


def find_by_email(db: Session, email: str) -> Optional[Admin]:
    return db.query(Admin).filter(Admin.email == email.lower()).first()


def find_all(db: Session) -> List[Admin]:
    return db.query(Admin).order_by(Admin.created_at.desc(), Admin.id.desc()).all()


def create(db: Session, email: str, password: str, name: str) -> Admin:
    admin = Admin(email=email.lower(), password=hash_password(password), name=name)
    with committing(db):
        db.add(admin)
    db.refresh(admin)
    logger.info(f"Admin created: {admin.email}")
    return admin


def update(
    db: Session,
    admin_id: int,
    name: Optional[str] = None,
    password: Optional[str] = None,
) -> Optional[Admin]:
    admin = find_by_id(db, admin_id)
    if admin is None:
        return None

    if not name and not password:
        return admin

    with committing(db):
        if name:
            admin.name = name
        if password:
            admin.password = hash_password(password)
    db.refresh(admin)
    return admin


def delete(db: Session, admin_id: int) -> bool:
    admin = find_by_id(db, admin_id)
    if admin is None:
        return False
    with committing(db):
        db.delete(admin)
    return True


def verify_password(admin: Admin, plain_password: str) -> bool:
    return _verify_password(plain_password, admin.password)
