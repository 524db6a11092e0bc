from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def resolve_zone(name: Optional[str]) -> Optional[tzinfo]:
    """Zone used to partition records by calendar day. Empty name means host local time."""
    name = (name or "").strip()
    return ZoneInfo(name) if name else None


def now_local(zone: Optional[tzinfo] = None) -> datetime:
    """Current aware time in the ledger zone.

    Note: Wrapped so tests can patch/mocked easier.
    """
    if zone is None:
        return datetime.now().astimezone()
    return datetime.now(zone)


def as_zone(value: datetime, zone: Optional[tzinfo] = None) -> datetime:
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(zone) if zone is not None else value.astimezone()


def local_day(value: datetime, zone: Optional[tzinfo] = None) -> str:
    """Calendar day (YYYY-MM-DD) of an instant, seen from the ledger zone."""
    return as_zone(value, zone).strftime("%Y-%m-%d")


def seconds_until_next_day(value: datetime, zone: Optional[tzinfo] = None) -> float:
    """Seconds from an instant to the next local midnight in the ledger zone."""
    local = as_zone(value, zone)
    midnight = datetime.combine(local.date() + timedelta(days=1), time.min, tzinfo=local.tzinfo)
    return (midnight - local).total_seconds()


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize an instant as UTC ISO-8601 so stored strings sort chronologically."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc).isoformat()


def from_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def month_bounds(month: str) -> tuple[str, str]:
    """First and last possible YYYY-MM-DD keys of a YYYY-MM month (string range, inclusive)."""
    return f"{month}-01", f"{month}-31"
