# melhik/models/common.py
from __future__ import annotations

import datetime as dt
import enum


class SyncStatus(str, enum.Enum):
    """Publish gate: drafts are visible to authors only, synced rows reach clients."""

    DRAFT = "draft"
    SYNCED = "synced"


def _now_utc() -> dt.datetime:
    """Return a timezone-aware UTC timestamp."""
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: dt.datetime | None) -> dt.datetime | None:
    # SQLite hands back naive datetimes; everything we write is UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def iso(value: dt.datetime | None) -> str | None:
    value = as_utc(value)
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)
_ONE_MS = dt.timedelta(milliseconds=1)


def to_millis(value: dt.datetime) -> int:
    """Milliseconds since epoch, floored. Integer arithmetic, no float rounding."""
    return (as_utc(value) - _EPOCH) // _ONE_MS


def from_millis(ms: int) -> dt.datetime:
    return _EPOCH + dt.timedelta(milliseconds=ms)
