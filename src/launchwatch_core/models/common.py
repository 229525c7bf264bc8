"""Common helpers shared by the launchwatch models.

- utc_now(): timezone-aware "now", used as a default factory everywhere
- utc_timestamp(): ISO 8601 string with 'Z' suffix
- parse_utc_timestamp(): tolerant parser for timestamps read back from the store
- age_seconds(): elapsed seconds since a timestamp
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_timestamp(value: Optional[datetime] = None) -> str:
    """Generate UTC timestamp with 'Z' suffix.

    Returns:
        str: UTC timestamp in ISO format with 'Z' suffix (e.g. "2024-01-15T14:30:00.123Z")
    """
    dt = (value or utc_now()).astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_utc_timestamp(timestamp_str: str) -> datetime:
    """Parse UTC timestamp string into timezone-aware datetime object.

    Handles multiple ISO 8601 formats:
    - '2025-10-17T04:02:59+00:00' (timezone-aware with +00:00)
    - '2025-10-17T04:02:59Z' (Zulu time suffix)
    - '2025-10-17T04:02:59' (naive, assumed UTC)

    Args:
        timestamp_str: UTC timestamp string in various formats

    Returns:
        datetime: Timezone-aware datetime object in UTC
    """
    if timestamp_str.endswith('Z'):
        dt = datetime.fromisoformat(timestamp_str[:-1])
        return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt

    dt = datetime.fromisoformat(timestamp_str)
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def age_seconds(since: datetime, now: Optional[datetime] = None) -> float:
    """Seconds elapsed between ``since`` and ``now`` (defaults to current time)."""
    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    return ((now or utc_now()) - since).total_seconds()
