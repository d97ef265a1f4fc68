# src/local_todo/utils/dates.py

"""
Date helpers shared by the store index encoder, the repositories and the
state containers, so "today" and "overdue" mean the same thing everywhere.

Rules:
- naive ISO strings (and date-only "YYYY-MM-DD") are local time
- numbers are epoch milliseconds
- unparseable values are treated as "no due date"
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import date, datetime, timedelta

Clock = Callable[[], datetime]


def now_local() -> datetime:
    return datetime.now().astimezone()


def now_ms() -> int:
    return int(time.time() * 1000)


def _as_aware(dt: datetime) -> datetime:
    # astimezone() on a naive datetime interprets it as local time.
    return dt.astimezone() if dt.tzinfo is None else dt


def parse_due(value: object) -> datetime | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_aware(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).astimezone()
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(float(value) / 1000.0).astimezone()
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return _as_aware(datetime.fromisoformat(s))
        except ValueError:
            return None
    return None


def to_timestamp(value: object) -> float | None:
    """Index encoder for due dates: POSIX seconds, or None."""
    dt = parse_due(value)
    return dt.timestamp() if dt is not None else None


def due_to_text(value: object) -> str | None:
    """Stored form of a due date: numbers and datetimes become ISO text, strings pass through."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_aware(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)):
        due = parse_due(value)
        return due.isoformat() if due is not None else None
    text = str(value)
    return text if text.strip() else None


def local_day_window(now: datetime) -> tuple[datetime, datetime]:
    """[start of local day, start of next local day) around `now`."""
    local = _as_aware(now).astimezone()
    start = datetime(local.year, local.month, local.day).astimezone()
    nxt = local.date() + timedelta(days=1)
    end = datetime(nxt.year, nxt.month, nxt.day).astimezone()
    return start, end


def is_due_today(value: object, now: datetime) -> bool:
    due = parse_due(value)
    if due is None:
        return False
    start, end = local_day_window(now)
    return start <= due < end


def is_past_due(value: object, now: datetime) -> bool:
    due = parse_due(value)
    if due is None:
        return False
    return due < _as_aware(now)


def format_date(value: object) -> str:
    due = parse_due(value)
    return due.strftime("%Y-%m-%d") if due is not None else ""


def format_relative(value: object, now: datetime) -> str:
    due = parse_due(value)
    if due is None:
        return ""
    days = (due.astimezone().date() - _as_aware(now).astimezone().date()).days
    if days == 0:
        return "today"
    if days == 1:
        return "tomorrow"
    if days == -1:
        return "yesterday"
    if 1 < days < 7:
        return f"in {days} days"
    if -7 < days < -1:
        return f"{-days} days ago"
    return format_date(value)
