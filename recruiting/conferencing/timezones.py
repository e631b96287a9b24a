"""
Meeting Start Normalization

The provider takes a start as local wall time plus an IANA timezone.
Callers hand us either a date + time entered in a named zone or an
instant; both are reduced to "YYYY-MM-DDTHH:MM:SS" wall time in the
meeting's zone. Uses pytz for zone data.
"""

from datetime import date, datetime, time
from typing import Union

import pytz
import structlog

from recruiting.shared.exceptions import InvalidMeetingTimeError

log = structlog.get_logger()

PROVIDER_FORMAT = "%Y-%m-%dT%H:%M:%S"

StartValue = Union[str, date, datetime]
TimeValue = Union[str, time, None]


def resolve_timezone(name: str) -> pytz.BaseTzInfo:
    """
    Look up an IANA timezone.

    Raises:
        InvalidMeetingTimeError: If the zone is unknown
    """
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError as e:
        raise InvalidMeetingTimeError(name, name, "unknown timezone") from e


def _parse_time(value: str | time, tz_name: str) -> time:
    if isinstance(value, time):
        return value
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
    raise InvalidMeetingTimeError(str(value), tz_name, "expected HH:MM or HH:MM:SS")


def _parse_datetime(value: str, tz_name: str) -> datetime:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise InvalidMeetingTimeError(value, tz_name, str(e)) from e


def _parse_date(value: str | date, tz_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise InvalidMeetingTimeError(value, tz_name, str(e)) from e


def _check_wall_time(tz: pytz.BaseTzInfo, wall: datetime, tz_name: str) -> None:
    try:
        tz.localize(wall, is_dst=None)
    except pytz.NonExistentTimeError as e:
        raise InvalidMeetingTimeError(
            wall.strftime(PROVIDER_FORMAT), tz_name, "time does not exist in this timezone"
        ) from e
    except pytz.AmbiguousTimeError:
        # Repeated hour at a DST fall-back; the provider resolves it
        pass


def to_wall_time(start: StartValue, tz_name: str, start_time: TimeValue = None) -> datetime:
    """
    Naive wall-clock datetime in `tz_name` for a meeting start.

    Args:
        start: Date (with `start_time`), naive or aware datetime, or ISO string
        tz_name: IANA timezone of the meeting
        start_time: Time of day when `start` is a date

    Returns:
        Naive datetime in the meeting zone, seconds precision
    """
    tz = resolve_timezone(tz_name)

    if start_time is not None:
        wall = datetime.combine(_parse_date(start, tz_name), _parse_time(start_time, tz_name))
    elif isinstance(start, datetime):
        wall = start
    elif isinstance(start, date):
        raise InvalidMeetingTimeError(start.isoformat(), tz_name, "a date needs a time")
    else:
        wall = _parse_datetime(start, tz_name)

    if wall.tzinfo is not None:
        # An instant: convert into the meeting zone
        wall = wall.astimezone(tz).replace(tzinfo=None)

    wall = wall.replace(microsecond=0)
    _check_wall_time(tz, wall, tz_name)
    return wall


def format_meeting_start(start: StartValue, tz_name: str, start_time: TimeValue = None) -> str:
    """
    Provider start string "YYYY-MM-DDTHH:MM:SS" in the meeting zone.

    Applying it to its own output with the same zone returns the same value.

    Example:
        format_meeting_start("2025-08-10", "Asia/Manila", "15:00")
        -> "2025-08-10T15:00:00"
    """
    return to_wall_time(start, tz_name, start_time).strftime(PROVIDER_FORMAT)


def localize_meeting_start(start: StartValue, tz_name: str) -> datetime:
    """
    Aware datetime in the meeting zone for a provider start time.

    Provider responses carry UTC instants ("...Z"); naive values are
    treated as wall time already in `tz_name`.
    """
    tz = resolve_timezone(tz_name)
    value = start if isinstance(start, datetime) else _parse_datetime(str(start), tz_name)
    if value.tzinfo is None:
        return tz.localize(value)
    return value.astimezone(tz)


def format_display_date(moment: datetime) -> str:
    """E.g. "Sunday, August 10, 2025"."""
    return f"{moment:%A, %B} {moment.day}, {moment.year}"


def format_display_time(moment: datetime) -> str:
    """E.g. "03:00 PM (PST)"."""
    return f"{moment:%I:%M %p} ({moment.tzname()})"
