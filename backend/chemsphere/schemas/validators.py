"""Reusable validators shared by schemas and query parameters.

Timestamp columns are naive UTC (`DateTime` without time zone), so every
client-supplied datetime goes through `to_naive_utc` before it reaches a
query or an insert.
"""

from datetime import datetime, timezone


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
