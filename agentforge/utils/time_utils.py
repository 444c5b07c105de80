"""Clock helpers shared by the research cycle and reporting."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_midnight(now: datetime) -> datetime:
    """Start of the local calendar day containing ``now`` (timezone-aware)."""
    local = now.astimezone()
    return local.replace(hour=0, minute=0, second=0, microsecond=0)
