"""Calendar-day bucketing for usage observations and dashboard windows."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import Enum
from zoneinfo import ZoneInfo


class UsageWindow(str, Enum):
    TODAY = "today"
    WEEK = "week"


_ALIASES = {
    "today": UsageWindow.TODAY,
    "week": UsageWindow.WEEK,
    "current-week": UsageWindow.WEEK,
}


def current_day(tz: str) -> date:
    """Return today's date as seen from the IANA time zone ``tz``."""
    return datetime.now(tz=ZoneInfo(tz)).date()


def parse_window(value: str | None) -> UsageWindow:
    """Map a ``range`` query value onto a window; anything unknown means today."""
    if not value:
        return UsageWindow.TODAY
    return _ALIASES.get(value.strip().lower(), UsageWindow.TODAY)


def window_bounds(window: UsageWindow, today: date) -> tuple[date, date]:
    """Inclusive first and last day covered by ``window``.

    The week is the ISO week holding ``today``: Monday through Sunday.
    """
    if window is UsageWindow.WEEK:
        start = today - timedelta(days=today.weekday())
        return start, start + timedelta(days=6)
    return today, today
