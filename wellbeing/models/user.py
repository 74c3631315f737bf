"""SQLAlchemy model for registered extension users."""

from __future__ import annotations

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class User(Base):
    """Account that owns usage records. Created on registration, never mutated."""

    __tablename__ = "users"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)

    usage_records = relationship("UsageRecord", back_populates="user")


__all__ = ["User"]
