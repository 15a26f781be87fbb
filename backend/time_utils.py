"""
Time utilities for the task API.

This module provides a single source of truth for time operations,
so stored timestamps and token expiry checks agree with each other.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Get current UTC time.
    Single source of truth for "now" throughout the application.

    Returns:
        timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime read back from the database to aware UTC.

    SQLite drops tzinfo on round-trip, so naive values are assumed to be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(expires_at: Optional[datetime]) -> bool:
    """
    Check whether an expiry timestamp lies in the past.

    A missing expiry never expires.
    """
    expires_at = as_utc(expires_at)
    if expires_at is None:
        return False
    return expires_at <= utc_now()
