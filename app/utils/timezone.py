# app/utils/timezone.py
from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """
    Returns a *naive* datetime representing UTC time.
    Every timestamp in the registry is stored and compared this way.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today_utc() -> date:
    return utcnow().date()


def as_naive_utc(value: datetime) -> datetime:
    """Aware datetimes are shifted to UTC and stripped; naive ones are taken as UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def period_start(period: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Start of a list filter window: ``today``, ``week`` (last 7 days) or
    ``month`` (same day last month). Anything else means no window.
    """
    now = now or utcnow()
    midnight = datetime(now.year, now.month, now.day)
    if period == "today":
        return midnight
    if period == "week":
        return midnight - timedelta(days=7)
    if period == "month":
        year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
        day = min(now.day, calendar.monthrange(year, month)[1])
        return datetime(year, month, day)
    return None


def format_display_date(value) -> str:
    # en-IN style, as printed on certificates
    return value.strftime("%d/%m/%Y")
