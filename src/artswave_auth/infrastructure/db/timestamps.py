"""Timestamp normalization for rows read back from the database."""

from __future__ import annotations

from datetime import UTC, datetime


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps; SQLite drops tzinfo on round trip."""

    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)
