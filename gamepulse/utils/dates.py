# ===== IMPORTS & DEPENDENCIES =====
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from gamepulse.config import IST_OFFSET

EPOCH = date(1970, 1, 1)

# ===== UTILITY FUNCTIONS =====

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(now: datetime) -> datetime:
    # Naive datetimes are taken to be UTC
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def utc_date(now: datetime) -> date:
    return _as_utc(now).date()


def ist_now(now: datetime) -> datetime:
    return _as_utc(now).astimezone(IST_OFFSET)


def ist_date(now: datetime) -> date:
    """The calendar date in India, which is what every daily rotation keys on."""
    return ist_now(now).date()


def ist_date_string(now: datetime) -> str:
    return ist_date(now).isoformat()


def day_of_year(d: date) -> int:
    """1 for January 1st, 365 or 366 for December 31st."""
    return d.timetuple().tm_yday


def week_seed(now: datetime) -> int:
    """
    Seed that changes once per ISO week (IST): iso_year * 100 + iso_week.

    Uses the ISO year, so days around Jan 1 belong to the year that owns
    their ISO week (2027-01-01 is week 53 of 2026, giving 202653).
    """
    iso_year, iso_week, _ = ist_date(now).isocalendar()
    return iso_year * 100 + iso_week


def days_since_epoch(d: date) -> int:
    return (d - EPOCH).days


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parses the date part of an ISO date or timestamp string; None if absent or malformed."""
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parses an RFC 3339 timestamp such as YouTube's publishedAt into an aware datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return _as_utc(parsed)


def date_range(start: date, end: date) -> str:
    """Formats a catalog `dates` filter."""
    return f"{start.isoformat()},{end.isoformat()}"


def rfc3339(moment: datetime) -> str:
    return _as_utc(moment).strftime("%Y-%m-%dT%H:%M:%SZ")


def days_ago(now: datetime, days: int) -> datetime:
    return _as_utc(now) - timedelta(days=days)
