"""Date normalization for feed payloads and user supplied filter dates.

Feed dates are tried against an ordered list of layouts; the first match wins.
User supplied dates (CLI flags, HTTP query parameters) use the default layout
``YYYY-DD-MM``, day before month.
"""

import re
from collections.abc import Callable
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from news_aggregator.exceptions import InvalidDateError, UnparseableDateError

DEFAULT_LAYOUT = "%Y-%d-%m"
EASTERN = ZoneInfo("America/New_York")

_RFC1123Z = "%a, %d %b %Y %H:%M:%S %z"
_RFC1123_GMT = "%a, %d %b %Y %H:%M:%S GMT"
_LONG_DATE = "%B %d, %Y"
_VENDOR_TIME_RE = re.compile(
    r"(?P<hour>\d{1,2}):(?P<minute>\d{2}) (?P<meridiem>[ap])\.m\. ET (?P<month>[A-Za-z]+) (?P<day>\d{1,2})"
)


def _parse_rfc1123z(value: str, now: datetime) -> datetime:
    return datetime.strptime(value, _RFC1123Z)


def _parse_rfc3339(value: str, now: datetime) -> datetime:
    if "T" not in value.upper():
        raise ValueError("RFC3339 needs a time part")
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError("RFC3339 needs an offset")
    return parsed


def _parse_vendor_time(value: str, now: datetime) -> datetime:
    match = _VENDOR_TIME_RE.fullmatch(value)
    if match is None:
        raise ValueError("not a vendor time")

    hour = int(match["hour"])
    if not 1 <= hour <= 12:
        raise ValueError("hour out of range")
    hour %= 12
    if match["meridiem"] == "p":
        hour += 12

    # No year in this layout: the current UTC year applies
    day_of_year = datetime.strptime(f"{match['month']} {match['day']} {now.year}", "%B %d %Y")
    return day_of_year.replace(hour=hour, minute=int(match["minute"]), tzinfo=EASTERN)


def _parse_long_date(value: str, now: datetime) -> datetime:
    return datetime.strptime(value, _LONG_DATE).replace(tzinfo=UTC)


def _parse_rfc1123_gmt(value: str, now: datetime) -> datetime:
    return datetime.strptime(value, _RFC1123_GMT).replace(tzinfo=UTC)


LAYOUTS: tuple[tuple[str, Callable[[str, datetime], datetime]], ...] = (
    ("RFC1123Z", _parse_rfc1123z),
    ("RFC3339", _parse_rfc3339),
    ("3:04 p.m. ET January 2", _parse_vendor_time),
    ("January 2, 2006", _parse_long_date),
    ("Mon, 02 Jan 2006 15:04:05 GMT", _parse_rfc1123_gmt),
)


def parse_date(value: str, now: datetime | None = None) -> datetime:
    """
    Parse a feed date against every known layout, in order.

    Args:
        value: Date text as found in the feed
        now: Reference instant for layouts without a year (defaults to now, UTC)

    Returns:
        Timezone aware datetime

    Raises:
        UnparseableDateError: If no layout matches
    """
    text = value.strip()
    reference = now or datetime.now(UTC)

    for _name, layout in LAYOUTS:
        try:
            return layout(text, reference)
        except ValueError:
            continue

    raise UnparseableDateError(value)


def parse_default_date(value: str) -> datetime:
    """Parse a ``YYYY-DD-MM`` date to midnight UTC; raises InvalidDateError."""
    try:
        return datetime.strptime(value.strip(), DEFAULT_LAYOUT).replace(tzinfo=UTC)
    except ValueError as e:
        raise InvalidDateError(f"invalid date {value!r}: expected YYYY-DD-MM") from e


def format_default_date(value: datetime) -> str:
    """Render a date in the ``YYYY-DD-MM`` layout."""
    return value.strftime(DEFAULT_LAYOUT)
