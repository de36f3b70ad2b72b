"""Calendar day mapping: instants to civil days in a user's timezone.

A day key is a "YYYY-MM-DD" string. Keys sort lexicographically in
chronological order, and two instants share a key exactly when they fall
on the same civil day in the zone used.

All day arithmetic happens on dates, never on elapsed seconds, so a
23- or 25-hour DST day is still one day.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEZONE = "UTC"


@dataclass(frozen=True)
class ResolvedTimezone:
    """A usable zone plus whether the requested identifier was rejected."""

    zone: tzinfo
    name: str
    fell_back: bool = False


def _fallback(timezone_id: object, reason: str) -> ResolvedTimezone:
    logger.warning(
        "timezone.invalid",
        timezone=timezone_id,
        fallback=DEFAULT_TIMEZONE,
        reason=reason,
    )
    return ResolvedTimezone(zone=UTC, name=DEFAULT_TIMEZONE, fell_back=True)


def resolve_timezone(timezone_id: str | None) -> ResolvedTimezone:
    """Resolve an IANA identifier, falling back to UTC.

    Never raises. Missing, empty, unknown or malformed identifiers resolve
    to UTC with a warning.
    """
    if not isinstance(timezone_id, str) or not timezone_id.strip():
        return _fallback(timezone_id, "missing")

    candidate = timezone_id.strip()
    try:
        zone = ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        # ValueError covers paths like "../etc" and embedded NULs
        return _fallback(timezone_id, type(e).__name__)

    return ResolvedTimezone(zone=zone, name=candidate)


def as_utc(instant: datetime) -> datetime:
    """The same instant as a UTC-aware datetime. Naive values are UTC."""
    if not isinstance(instant, datetime):
        raise TypeError(f"instant must be a datetime, got {type(instant).__name__}")
    # Stored timestamps are UTC; some drivers hand them back naive
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def to_day_key(instant: datetime, zone: tzinfo) -> str:
    """Day key of an instant in an already-resolved zone."""
    return as_utc(instant).astimezone(zone).date().isoformat()


def day_key(instant: datetime, timezone_id: str | None) -> str:
    """Civil day (YYYY-MM-DD) on which an instant falls in the given zone."""
    return to_day_key(instant, resolve_timezone(timezone_id).zone)


def parse_day_key(key: str) -> date:
    return date.fromisoformat(key)


def shift_day_key(key: str, days: int) -> str:
    """Move a day key by whole calendar days (negative goes back)."""
    return (parse_day_key(key) + timedelta(days=days)).isoformat()


def day_difference(later: str, earlier: str) -> int:
    """Whole calendar days from earlier to later."""
    return (parse_day_key(later) - parse_day_key(earlier)).days


def today_key(zone: tzinfo, now: datetime | None = None) -> str:
    return to_day_key(now if now is not None else datetime.now(UTC), zone)


def yesterday_key(zone: tzinfo, now: datetime | None = None) -> str:
    """Today's key minus one calendar day (not now minus 24 hours)."""
    return shift_day_key(today_key(zone, now), -1)
