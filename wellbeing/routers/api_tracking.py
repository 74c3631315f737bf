from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..crud.usage import aggregate_usage, record_observation
from ..db.session import get_db
from ..deps.auth import AuthContext, require_user
from ..schemas.usage import DashboardEntry, MessageResponse, TrackRequest
from ..services.windows import parse_window

router = APIRouter(tags=["tracking"])


@router.post("/track", response_model=MessageResponse, summary="Record seconds spent on a site")
def track(
    request: Request,
    payload: TrackRequest,
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
):
    visit_date = record_observation(
        db,
        auth.user_id,
        payload.website_url,
        payload.website_title,
        payload.total_time_seconds,
    )
    # Picked up by RequestIdMiddleware for the request.completed line.
    request.state.ledger = {
        "visit_date": visit_date.isoformat(),
        "seconds": payload.total_time_seconds,
    }
    return MessageResponse(message="Data saved successfully")


@router.get("/dashboard", response_model=list[DashboardEntry], summary="Per-site totals for a window")
def dashboard(
    request: Request,
    range_: str | None = Query(default=None, alias="range"),
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
):
    window = parse_window(range_)
    rows = aggregate_usage(db, auth.user_id, window)
    request.state.ledger = {"window": window.value, "sites": len(rows)}
    return rows
