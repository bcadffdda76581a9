"""
Tolerant ISO-8601 parsing for review dates.

Review dates come from scrapers and seed files with mixed formats
("2024-05-01", "2024-05-01T10:00:00Z", "2024-05-01T10:00:00.000+00:00").
Anything unparseable becomes None instead of raising.
"""
from datetime import datetime, timezone
from typing import Optional

SECONDS_PER_DAY = 86400


def parse_review_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string into an aware UTC datetime.

    Naive values are taken as UTC.

    Examples:
        >>> parse_review_date("2024-05-01T00:00:00Z").isoformat()
        '2024-05-01T00:00:00+00:00'
        >>> parse_review_date("hace 2 semanas") is None
        True
    """
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def days_between(later: datetime, earlier: datetime) -> float:
    """Fractional days from earlier to later"""
    return (later - earlier).total_seconds() / SECONDS_PER_DAY


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """UTC ISO string with millisecond precision and a Z suffix"""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + \
        f"{value.microsecond // 1000:03d}Z"
