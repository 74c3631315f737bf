"""Pydantic schemas for the tracking and dashboard endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, StrictInt


class TrackRequest(BaseModel):
    website_url: Optional[str] = None
    website_title: Optional[str] = None
    # JSON booleans and numeric strings are rejected, not coerced.
    total_time_seconds: Optional[StrictInt] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "website_url": "https://example.com",
                "website_title": "Example Domain",
                "total_time_seconds": 42,
            }
        },
    }


class MessageResponse(BaseModel):
    message: str


class DashboardEntry(BaseModel):
    website_url: str
    total_time: int
