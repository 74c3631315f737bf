"""Usage ledger helpers: accumulate observed seconds and aggregate them per window."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import PersistenceError, ValidationError
from ..models.usage import UNIQUE_KEY_COLUMNS, UsageRecord
from ..services.windows import UsageWindow, current_day, window_bounds

logger = logging.getLogger(__name__)

WEBSITE_URL_MAX_LENGTH = UsageRecord.__table__.c.website_url.type.length


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _upsert_statement(dialect_name: str, values: dict[str, object]):
    """Build a single INSERT that adds to the stored seconds when the key already exists."""

    table = UsageRecord.__table__
    if dialect_name in ("sqlite", "postgresql"):
        insert = sqlite.insert if dialect_name == "sqlite" else postgresql.insert
        stmt = insert(table).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=list(UNIQUE_KEY_COLUMNS),
            set_={
                "total_time_seconds": table.c.total_time_seconds + stmt.excluded.total_time_seconds,
                "website_title": func.coalesce(stmt.excluded.website_title, table.c.website_title),
            },
        )
    if dialect_name in ("mysql", "mariadb"):
        stmt = mysql.insert(table).values(**values)
        return stmt.on_duplicate_key_update(
            total_time_seconds=table.c.total_time_seconds + stmt.inserted.total_time_seconds,
            website_title=func.coalesce(stmt.inserted.website_title, table.c.website_title),
        )
    raise PersistenceError(f"Atomic upsert is not available for the {dialect_name!r} dialect")


def record_observation(
    db: Session,
    user_id: int,
    website_url: str | None,
    website_title: str | None,
    seconds: int | None,
    *,
    today: date | None = None,
) -> date:
    """Add ``seconds`` to the user's total for ``website_url`` on the current day.

    The day is resolved once, up front, so a write that straddles midnight
    still lands in a single bucket. Returns the day that was written.
    """

    url = _clean_text(website_url)
    if not url or seconds is None:
        raise ValidationError("Missing website_url or total_time_seconds")
    if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds < 0:
        raise ValidationError("total_time_seconds must be a non-negative integer")
    if len(url) > WEBSITE_URL_MAX_LENGTH:
        raise ValidationError(f"website_url must be at most {WEBSITE_URL_MAX_LENGTH} characters")

    visit_date = today or current_day(settings.TRACKING_TZ)
    values = {
        "user_id": user_id,
        "website_url": url,
        "website_title": _clean_text(website_title),
        "visit_date": visit_date,
        "total_time_seconds": seconds,
    }
    try:
        stmt = _upsert_statement(db.get_bind().dialect.name, values)
        db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            "usage.record_failed",
            extra={"extra_data": {"user_id": user_id, "website_url": url}},
        )
        raise PersistenceError("Failed to record usage") from exc

    logger.info(
        "usage.recorded",
        extra={
            "extra_data": {
                "user_id": user_id,
                "website_url": url,
                "visit_date": visit_date.isoformat(),
                "seconds": seconds,
            }
        },
    )
    return visit_date


def aggregate_usage(
    db: Session,
    user_id: int,
    window: UsageWindow = UsageWindow.TODAY,
    *,
    today: date | None = None,
) -> list[dict[str, object]]:
    """Sum seconds per site over ``window``, largest total first."""

    day = today or current_day(settings.TRACKING_TZ)
    start, end = window_bounds(window, day)
    total = func.sum(UsageRecord.total_time_seconds).label("total_time")
    stmt = (
        select(UsageRecord.website_url, total)
        .where(
            UsageRecord.user_id == user_id,
            UsageRecord.visit_date >= start,
            UsageRecord.visit_date <= end,
        )
        .group_by(UsageRecord.website_url)
        .order_by(total.desc())
    )
    try:
        rows = db.execute(stmt).all()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            "usage.aggregate_failed",
            extra={"extra_data": {"user_id": user_id, "window": window.value}},
        )
        raise PersistenceError("Failed to load usage") from exc
    return [
        {"website_url": row.website_url, "total_time": int(row.total_time or 0)}
        for row in rows
    ]


def get_usage_record(db: Session, user_id: int, website_url: str, visit_date: date) -> UsageRecord | None:
    stmt = select(UsageRecord).where(
        UsageRecord.user_id == user_id,
        UsageRecord.website_url == website_url,
        UsageRecord.visit_date == visit_date,
    )
    return db.execute(stmt).scalars().first()


__all__ = ["aggregate_usage", "get_usage_record", "record_observation"]
