"""Timestamp parsing and formatting for the Toggl wire format.

Decoding is tolerant: the service returns UTC timestamps with a ``Z``
suffix in some places and numeric offsets in others. Encoding always
produces the offset form.
"""

from datetime import datetime, timezone
from typing import Optional

from toggl_timer.core.errors import MalformedTimestamp

# Tried in order; first match wins.
UTC_FORMATS = ("%Y-%m-%dT%H:%M:%SZ", "%Y-%m-%dT%H:%M:%S.%fZ")
OFFSET_FORMATS = ("%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%dT%H:%M:%S.%f%z")

# Returned by accessors when a timestamp is unset. Not a meaningful instant.
ZERO_INSTANT = datetime.min.replace(tzinfo=timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a wire timestamp.

    Args:
        value: Timestamp string, empty string or None

    Returns:
        Timezone-aware datetime, or None for an empty value

    Raises:
        MalformedTimestamp: If the string matches no known format
    """
    if not value:
        return None

    for fmt in UTC_FORMATS:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    for fmt in OFFSET_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    raise MalformedTimestamp(value)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DDTHH:MM:SS+HH:MM``.

    Naive datetimes are taken to be local time.
    """
    if value.tzinfo is None:
        value = value.astimezone()
    return value.isoformat(timespec="seconds")
