"""
Session labels: timestamps -> short relative names for display

    Today 14:05
    Yesterday 09:30
    Jan 05 18:12

Both the labelled timestamp and "now" are moved into one timezone (local
system time unless told otherwise) before their calendar dates are compared.
"""

from datetime import datetime, tzinfo
from typing import Optional, Union

from dateutil import parser as date_parser
from dateutil import tz as date_tz

from tokenlog.exceptions import InvalidArgument

MONTH_ABBREVIATIONS = (
    'Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
    'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec',
)

Timestamp = Union[datetime, str]


def parse_timestamp(value: Optional[Timestamp]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp string.

    Strict ISO-8601 is tried first, then dateutil's general parser for the
    looser shapes some recorders write. Returns None if neither works.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date_parser.isoparse(value)
    except (ValueError, OverflowError):
        pass
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError):
        return None


def _in_zone(value: datetime, zone: tzinfo) -> datetime:
    # Naive values are taken to be in the target zone already
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def format_session_label(timestamp: Timestamp, now: Optional[datetime] = None,
                         tz: Optional[tzinfo] = None) -> str:
    """
    Label a session start time relative to ``now``.

    Args:
        timestamp: datetime or ISO-8601 string
        now: Reference time; the current time is used only when omitted
        tz: Timezone for calendar comparison (default: local system time)

    Returns:
        "Today HH:MM", "Yesterday HH:MM" or "Mon DD HH:MM"

    Raises:
        InvalidArgument: If ``timestamp`` is a string that cannot be parsed
    """
    zone = tz or date_tz.tzlocal()
    moment = parse_timestamp(timestamp)
    if moment is None:
        raise InvalidArgument(f"Unparsable timestamp: {timestamp!r}")

    moment = _in_zone(moment, zone)
    reference = _in_zone(now, zone) if now is not None else datetime.now(zone)

    clock = f"{moment.hour:02d}:{moment.minute:02d}"
    days_ago = (reference.date() - moment.date()).days
    if days_ago == 0:
        return f"Today {clock}"
    if days_ago == 1:
        return f"Yesterday {clock}"
    return f"{MONTH_ABBREVIATIONS[moment.month - 1]} {moment.day:02d} {clock}"
