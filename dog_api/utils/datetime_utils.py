# dog_api/utils/datetime_utils.py
"""
Timestamp helpers shared by the model and API layers.

Firestore hands back timestamps as DatetimeWithNanoseconds (a datetime
subclass) and the API renders them as ISO-8601 strings with a 'Z' suffix.
Everything in between is a timezone-aware UTC datetime.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)


class DateTimeUtils:
    """Conversions between Firestore timestamps, datetimes and ISO strings."""

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        Parses an ISO-8601 string into a UTC datetime.

        Accepted forms:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+09:00
        - 2024-01-15T10:30:00.123456Z
        - 2024-01-15T10:30:00 (assumed UTC)
        """
        if not iso_string:
            raise ValueError("cannot parse an empty datetime string")
        try:
            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'
            dt = dateutil_parser.isoparse(iso_string)
        except (ValueError, OverflowError) as e:
            logger.error(f"ISO datetime parse failed: {iso_string} - {e}")
            raise ValueError(f"invalid ISO datetime: {iso_string}") from e

        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
        """datetime -> '2024-01-15T10:30:00Z'. Naive values are taken as UTC; None passes through."""
        if dt is None:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        else:
            dt = dt.astimezone(timezone.utc)
        return dt.isoformat().replace('+00:00', 'Z')

    @staticmethod
    def from_firestore(value: Any) -> Any:
        """
        Normalizes a timestamp read from Firestore to a UTC datetime.
        Values that are not timestamps are returned unchanged.
        """
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value.astimezone(timezone.utc)
        if hasattr(value, 'timestamp'):
            # protobuf-style Timestamp values
            return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
        return value
