"""
Relational access layer: one module of query functions per entity.

Every function takes the request's SQLAlchemy ``Session`` as its first
argument and commits its own write. Constraint failures surface as
``DuplicateKeyError`` / ``ForeignKeyViolationError``.
"""

from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import translate_integrity_error


@contextmanager
def committing(db: Session):
    """Commit on success; roll back and translate integrity failures."""
    try:
        yield
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise translate_integrity_error(e) from e
    except Exception:
        db.rollback()
        raise
