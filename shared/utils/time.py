from __future__ import annotations

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    return datetime.now(UTC)


def utc_after(*, minutes: int = 0, seconds: int = 0) -> datetime:
    return utc_now() + timedelta(minutes=minutes, seconds=seconds)
