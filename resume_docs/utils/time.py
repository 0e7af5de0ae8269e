"""UTC timestamps for pipeline reports and document titles."""
from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def isoformat(dt: datetime | None = None) -> str:
    """ISO-8601 in UTC at second precision; the current time when ``dt`` is omitted."""
    return (dt or utc_now()).astimezone(timezone.utc).isoformat(timespec="seconds")
