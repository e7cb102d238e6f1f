# FILE: historial/utils/timezone.py
from __future__ import annotations

from datetime import datetime, timezone


def utcnow_db() -> datetime:
    """
    Returns a *naive* datetime representing UTC.
    DATETIME columns carry no zone, so everything is stored as naive UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
