"""Timezone helpers.

Timestamps are written as aware UTC datetimes. Some providers hand them
back naive, so comparisons go through ``as_utc``.
"""

from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
