"""
Date/time draft synchronization.

An event has one canonical timestamp but the user edits it through two
separate text controls: a calendar date (YYYY-MM-DD) and a clock time
(HH:MM). The helpers here merge one edited component into the canonical
value while carrying every other component over unchanged.

Both the display strings and the merge are computed in the same calendar
local frame so a date never flips by a day when the stored UTC value is
read back in another offset. The canonical value is always written as
UTC with a trailing "Z".
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger("eventform.datetime_sync")

DATE_TEXT_FORMAT = "%Y-%m-%d"
TIME_TEXT_FORMAT = "%H:%M"


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """
    Resolve a configured timezone name.

    Returns None for "use the system local zone".

    Raises:
        ValueError: If the name is not a known IANA zone
    """
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name}") from e


def parse_timestamp(value: str) -> datetime:
    """
    Parse a canonical ISO-8601 timestamp into an aware datetime.

    Naive values are taken as UTC.

    Raises:
        ValueError: If the value is not ISO-8601
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Format an aware datetime as canonical UTC ISO-8601."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def is_valid_timestamp(value: object) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parse_timestamp(value)
    except ValueError:
        return False
    return True


def _to_local(value: datetime, tz: Optional[tzinfo]) -> datetime:
    return value.astimezone(tz) if tz is not None else value.astimezone()


def _from_local(local: datetime, tz: Optional[tzinfo]) -> str:
    if tz is None:
        # Re-localize so the offset matches the new wall-clock time
        local = local.replace(tzinfo=None).astimezone()
    return format_timestamp(local)


def parse_date_text(text: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD draft. Returns None when absent or invalid."""
    if not text or not text.strip():
        return None
    try:
        return datetime.strptime(text.strip(), DATE_TEXT_FORMAT).date()
    except ValueError:
        logger.debug(f"Ignoring unparseable date draft: {text!r}")
        return None


def parse_time_text(text: Optional[str]) -> Optional[time]:
    """Parse an HH:MM (or HH:MM:SS) draft. Returns None when absent or invalid."""
    if not text or not text.strip():
        return None
    try:
        return time.fromisoformat(text.strip())
    except ValueError:
        logger.debug(f"Ignoring unparseable time draft: {text!r}")
        return None


def format_date_text(timestamp: str, tz: Optional[tzinfo] = None) -> str:
    return _to_local(parse_timestamp(timestamp), tz).strftime(DATE_TEXT_FORMAT)


def format_time_text(timestamp: str, tz: Optional[tzinfo] = None) -> str:
    return _to_local(parse_timestamp(timestamp), tz).strftime(TIME_TEXT_FORMAT)


def apply_date_edit(current: str, new_date: date, tz: Optional[tzinfo] = None) -> str:
    """
    Replace the calendar date of a timestamp.

    Year, month and day come from new_date; hour, minute, second and
    sub-second are kept from current.

    Args:
        current: Canonical timestamp
        new_date: Calendar date picked by the user
        tz: Calendar frame, None for the system local zone

    Returns:
        New canonical timestamp
    """
    local = _to_local(parse_timestamp(current), tz)
    merged = local.replace(
        year=new_date.year, month=new_date.month, day=new_date.day, fold=0
    )
    return _from_local(merged, tz)


def apply_time_edit(current: str, new_time: time, tz: Optional[tzinfo] = None) -> str:
    """
    Replace the clock time (hour and minute) of a timestamp.

    Date, seconds and sub-seconds are kept from current.
    """
    local = _to_local(parse_timestamp(current), tz)
    merged = local.replace(hour=new_time.hour, minute=new_time.minute, fold=0)
    return _from_local(merged, tz)


@dataclass
class DateTimeDrafts:
    """
    Free-typing buffers of the date and time controls.

    The buffers are derived from the canonical timestamp once, when the
    form is initialized. Afterwards they only echo what the user typed;
    a draft reaches the canonical value only through commit_date() or
    commit_time() and only when it parses.
    """

    date_text: str = ""
    time_text: str = ""
    tz: Optional[tzinfo] = None

    @classmethod
    def from_timestamp(cls, timestamp: str, tz: Optional[tzinfo] = None) -> "DateTimeDrafts":
        try:
            return cls(
                date_text=format_date_text(timestamp, tz),
                time_text=format_time_text(timestamp, tz),
                tz=tz,
            )
        except ValueError:
            logger.warning(f"Cannot derive date/time drafts from {timestamp!r}")
            return cls(tz=tz)

    def commit_date(self, text: Optional[str], current: str) -> str:
        """
        Echo a date draft and merge it into the canonical timestamp.

        Returns:
            The new canonical timestamp, or current unchanged when the
            draft does not parse
        """
        self.date_text = text or ""
        parsed = parse_date_text(text)
        if parsed is None:
            return current
        return apply_date_edit(current, parsed, self.tz)

    def commit_time(self, text: Optional[str], current: str) -> str:
        """Echo a time draft and merge it into the canonical timestamp."""
        self.time_text = text or ""
        parsed = parse_time_text(text)
        if parsed is None:
            return current
        return apply_time_edit(current, parsed, self.tz)
