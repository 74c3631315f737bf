"""Account helpers backing registration and login."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import AuthError, ConflictError, PersistenceError, ValidationError
from ..core.security import hash_password, verify_password
from ..models.user import User

logger = logging.getLogger(__name__)

USERNAME_MAX_LENGTH = User.__table__.c.username.type.length


def _require_credentials(username: str | None, password: str | None) -> str:
    name = (username or "").strip()
    if not name or not password:
        raise ValidationError("Username and password are required")
    return name


def get_user_by_username(db: Session, username: str) -> User | None:
    stmt = select(User).where(User.username == username)
    try:
        return db.execute(stmt).scalars().first()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("users.lookup_failed")
        raise PersistenceError("Failed to load user") from exc


def create_user(db: Session, username: str | None, password: str | None) -> User:
    name = _require_credentials(username, password)
    if len(name) > USERNAME_MAX_LENGTH:
        raise ValidationError(f"Username must be at most {USERNAME_MAX_LENGTH} characters")
    if get_user_by_username(db, name) is not None:
        raise ConflictError("Username already exists")

    user = User(username=name, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with another registration for the same name.
        db.rollback()
        raise ConflictError("Username already exists") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("users.create_failed")
        raise PersistenceError("Failed to register user") from exc
    db.refresh(user)
    logger.info("users.registered", extra={"extra_data": {"user_id": user.id}})
    return user


def authenticate_user(db: Session, username: str | None, password: str | None) -> User:
    name = _require_credentials(username, password)
    user = get_user_by_username(db, name)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("users.login_rejected")
        raise AuthError("Invalid credentials")
    return user


__all__ = ["authenticate_user", "create_user", "get_user_by_username"]
