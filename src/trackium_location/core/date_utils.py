"""
Date and timezone utilities.

All timestamps exchanged with the remote node are UTC, ISO-8601 with
millisecond precision and a ``Z`` suffix (e.g. ``2024-01-01T12:00:00.000Z``).
"""

from datetime import datetime
from typing import Optional

import pytz


class DateUtils:
    """Utilities for UTC timestamp handling."""

    @staticmethod
    def utc_now() -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        return datetime.now(pytz.UTC)

    @staticmethod
    def to_utc(value: datetime) -> datetime:
        """
        Convert a datetime to UTC.

        Naive datetimes are assumed to already be in UTC.
        """
        if value.tzinfo is None:
            return pytz.UTC.localize(value)
        return value.astimezone(pytz.UTC)

    @classmethod
    def to_iso(cls, value: Optional[datetime] = None) -> str:
        """
        Format a datetime as an ISO-8601 UTC string.

        Args:
            value: Datetime to format (defaults to now)

        Returns:
            String like ``2024-01-01T12:00:00.000Z``
        """
        value = cls.to_utc(value or cls.utc_now())
        return value.strftime("%Y-%m-%dT%H:%M:%S") + f".{value.microsecond // 1000:03d}Z"

    @classmethod
    def parse_iso(cls, value: str) -> datetime:
        """
        Parse an ISO-8601 timestamp into a timezone-aware UTC datetime.

        Raises:
            ValueError: If the string is not a valid timestamp
        """
        if not value:
            raise ValueError("Empty timestamp")
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return cls.to_utc(datetime.fromisoformat(value))
