"""Time-slot arithmetic for session scheduling."""

from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from app.config import settings
from app.exceptions import InputValidationError

_HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def session_timezone() -> ZoneInfo:
    return ZoneInfo(settings.SESSION_TIMEZONE)


def local_now(tz: Optional[ZoneInfo] = None) -> datetime:
    """Current time in the session timezone."""
    return datetime.now(tz or session_timezone())


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Return ``now`` as an aware datetime; naive values are read as session-local."""
    tz = session_timezone()
    if now is None:
        return local_now(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def parse_hhmm(value: str) -> time:
    """Parse a 24h ``HH:MM`` string, raising InputValidationError when malformed."""
    match = _HHMM_PATTERN.match((value or "").strip())
    if not match:
        raise InputValidationError(f"Invalid time '{value}'. Use 24h HH:MM format")
    return time(int(match.group(1)), int(match.group(2)))


def slot_duration_minutes(start_time: str, end_time: str) -> int:
    start = parse_hhmm(start_time)
    end = parse_hhmm(end_time)
    minutes = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    if minutes <= 0:
        raise InputValidationError("Time slot end time must be after its start time")
    return minutes


def session_window(
    slot_date: date,
    start_time: str,
    end_time: str,
    tz: Optional[ZoneInfo] = None,
) -> Tuple[datetime, datetime]:
    """Combine the slot date with its HH:MM bounds in the session timezone."""
    tz = tz or session_timezone()
    start = datetime.combine(slot_date, parse_hhmm(start_time), tzinfo=tz)
    end = datetime.combine(slot_date, parse_hhmm(end_time), tzinfo=tz)
    return start, end


def is_within_window(now: datetime, window: Tuple[datetime, datetime]) -> bool:
    start, end = window
    return start <= now <= end


def schedule_state(session, now: Optional[datetime] = None) -> str:
    """
    Display label for a session relative to its slot:
    completed / cancelled / ongoing / missed / ready / scheduled.
    """
    if session.status in ("completed", "cancelled", "ongoing"):
        return session.status
    now = resolve_now(now)
    start, end = session_window(session.slot_date, session.start_time, session.end_time)
    if now > end:
        return "missed"
    if start <= now <= end:
        return "ready"
    return "scheduled"
