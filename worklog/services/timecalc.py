from __future__ import annotations

from datetime import date, datetime, timezone

MS_PER_HOUR = 1000 * 60 * 60


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    """Attach UTC to naive values (SQLite drops tzinfo) and convert aware ones."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso(ts: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 timestamp string into an aware UTC datetime.
    Naive input is taken to be UTC. Returns None if ts is falsy; raises
    ValueError when the string is not ISO-8601 or falls outside the range
    datetime can represent once shifted to UTC.
    """
    if not ts:
        return None
    if not isinstance(ts, datetime):
        ts = datetime.fromisoformat(ts.strip().replace("Z", "+00:00"))
    try:
        return as_utc(ts)
    except OverflowError as exc:
        raise ValueError(f"timestamp out of range: {ts!r}") from exc


def duration_ms(start: datetime | None, end: datetime | None) -> int:
    """Whole milliseconds between start and end; 0 when either side is missing."""
    s = as_utc(start)
    e = as_utc(end)
    if not s or not e:
        return 0
    delta = e - s
    return delta.days * 86_400_000 + delta.seconds * 1000 + delta.microseconds // 1000


def ms_to_hours(ms: int) -> float:
    return ms / MS_PER_HOUR


def utc_day(dt: datetime) -> date:
    return as_utc(dt).date()
