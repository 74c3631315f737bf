"""SQLAlchemy model for the per-user, per-site, per-day usage ledger."""

from __future__ import annotations

from sqlalchemy import Column, Date, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..db.session import Base

UNIQUE_KEY_NAME = "uq_time_tracking_user_site_day"
UNIQUE_KEY_COLUMNS = ("user_id", "website_url", "visit_date")


class UsageRecord(Base):
    """Seconds a user spent on one site during one calendar day.

    ``total_time_seconds`` only ever grows: each observation is added to it by
    an upsert keyed on ``UNIQUE_KEY_COLUMNS``. ``website_title`` is whatever
    the most recent observation that carried a title said.
    """

    __tablename__ = "time_tracking"
    __allow_unmapped__ = True
    __table_args__ = (UniqueConstraint(*UNIQUE_KEY_COLUMNS, name=UNIQUE_KEY_NAME),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Bounded so the composite unique key fits MySQL's utf8mb4 index size limit.
    website_url = Column(String(512), nullable=False)
    website_title = Column(Text, nullable=True)
    visit_date = Column(Date, nullable=False, index=True)
    total_time_seconds = Column(Integer, nullable=False, default=0)

    user = relationship("User", back_populates="usage_records")


__all__ = ["UNIQUE_KEY_COLUMNS", "UNIQUE_KEY_NAME", "UsageRecord"]
