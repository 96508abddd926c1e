# uvbunny/utils/datetime_utils.py
"""
Central date/time handling for the API and the Cloud Functions.

Everything stored in or read from Firestore goes through this module so that
timestamps are always timezone-aware UTC datetimes, and everything sent to a
client is an ISO-8601 string with a 'Z' suffix.
"""

import logging
from datetime import datetime, date, timezone, time
from typing import Any, Optional
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)


class DateTimeUtils:
    """UTC-only helpers for timestamps crossing the Firestore and HTTP boundaries."""

    @staticmethod
    def now() -> datetime:
        """Current time as a UTC-aware datetime."""
        return datetime.now(timezone.utc)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        Parse an ISO-8601 string into a UTC-aware datetime.

        Accepts a trailing 'Z', explicit offsets and naive values (assumed UTC).
        """
        if not iso_string:
            raise ValueError("Cannot parse an empty datetime string")
        try:
            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'
            dt = dateutil_parser.isoparse(iso_string)
        except (ValueError, OverflowError) as e:
            logger.error(f"ISO datetime parse failed: {iso_string} - {e}")
            raise ValueError(f"Invalid ISO datetime: {iso_string}")
        return DateTimeUtils.ensure_utc(dt)

    @staticmethod
    def ensure_utc(dt: datetime) -> datetime:
        """Attach UTC to naive datetimes and convert aware ones to UTC."""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """Format a datetime as ISO-8601 in UTC with a 'Z' suffix."""
        return DateTimeUtils.ensure_utc(dt).isoformat().replace('+00:00', 'Z')

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Prepare a value for a Firestore write.

        - date -> datetime at 00:00 UTC
        - naive datetime -> UTC-aware datetime
        - dicts and lists are converted recursively
        """
        if isinstance(obj, datetime):
            return DateTimeUtils.ensure_utc(obj)
        if isinstance(obj, date):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)
        if isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [DateTimeUtils.for_firestore(item) for item in obj]
        return obj

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Normalize a value read from Firestore.

        Firestore timestamps (DatetimeWithNanoseconds or anything exposing
        timestamp()) become UTC-aware datetimes; containers are walked recursively.
        """
        if isinstance(obj, datetime):
            return DateTimeUtils.ensure_utc(obj)
        if isinstance(obj, dict):
            return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [DateTimeUtils.from_firestore(item) for item in obj]
        if hasattr(obj, 'timestamp') and callable(obj.timestamp):
            try:
                return datetime.fromtimestamp(obj.timestamp(), tz=timezone.utc)
            except (TypeError, ValueError, OverflowError) as e:
                # Keep the raw value; callers fall back to their own default.
                logger.error(f"Firestore timestamp conversion failed: {obj!r} - {e}")
        return obj

    @staticmethod
    def to_datetime(value: Any, default: Optional[datetime] = None) -> Optional[datetime]:
        """
        Coerce a stored timestamp (Firestore timestamp, datetime, epoch millis or
        ISO string) to a UTC datetime. Missing or unreadable values yield `default`.
        """
        if value is None:
            return default
        if isinstance(value, str):
            try:
                return DateTimeUtils.parse_iso_datetime(value)
            except ValueError:
                return default
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        converted = DateTimeUtils.from_firestore(value)
        return converted if isinstance(converted, datetime) else default
