"""Weekly availability windows and "HH:mm" slot parsing.

Times travel as "HH:mm" text at the edges and as minutes since midnight
everywhere else.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Sequence

from backend.core import config
from backend.core.errors import ValidationError

DAY_NAMES = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')
MINUTES_PER_DAY = 24 * 60

_HHMM_PATTERN = re.compile(r'^(\d{2}):(\d{2})$')
_RANGE_PATTERN = re.compile(r'^\s*(\S+)\s*-\s*(\S+)\s*$')


@dataclass(frozen=True)
class WindowSpec:
    """A validated availability window, ready to be stored."""
    day: str
    start_minute: int
    end_minute: int
    is_available: bool = True


@dataclass(frozen=True)
class TimeSlot:
    start_minute: int
    duration_minutes: int

    @property
    def start(self) -> str:
        return format_hhmm(self.start_minute)


def parse_hhmm(value: str) -> int:
    """Convert "HH:mm" to minutes since midnight. Raises ValueError."""
    if not isinstance(value, str):
        raise ValueError(f'Expected "HH:mm" text, got {type(value).__name__}')

    match = _HHMM_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f'Invalid time "{value}", expected HH:mm')

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f'Time "{value}" is out of range')

    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    return f'{minutes // 60:02d}:{minutes % 60:02d}'


def is_time_within(time_slot: str, window_start: str, window_end: str) -> bool:
    """True iff window_start <= time_slot < window_end.

    Malformed input never raises; it simply does not match.
    """
    try:
        slot = parse_hhmm(time_slot)
        start = parse_hhmm(window_start)
        end = parse_hhmm(window_end)
    except ValueError:
        return False

    return start <= slot < end


def weekday_name(value: date) -> str:
    return DAY_NAMES[value.weekday()]


def normalize_time_slot(value: str, default_minutes: int | None = None) -> TimeSlot:
    """Parse "HH:mm" or "HH:mm - HH:mm" into a start point plus a length."""
    if default_minutes is None:
        default_minutes = config.DEFAULT_SLOT_MINUTES

    if not isinstance(value, str) or not value.strip():
        raise ValidationError('time_slot is required.')

    range_match = _RANGE_PATTERN.match(value)
    try:
        if range_match:
            start = parse_hhmm(range_match.group(1))
            end = parse_hhmm(range_match.group(2))
        else:
            start = parse_hhmm(value)
            end = None
    except ValueError as exc:
        raise ValidationError('time_slot must be "HH:mm" or "HH:mm - HH:mm".') from exc

    if end is None:
        return TimeSlot(start_minute=start, duration_minutes=default_minutes)

    if end <= start:
        raise ValidationError('time_slot range must end after it starts.')

    return TimeSlot(start_minute=start, duration_minutes=end - start)


def _read_field(entry: Any, *names: str) -> Any:
    for name in names:
        if isinstance(entry, dict):
            if name in entry:
                return entry[name]
        elif hasattr(entry, name):
            return getattr(entry, name)
    return None


def validate_availability_slots(entries: Sequence[Any]) -> list[WindowSpec]:
    """Validate a full list of windows; any bad entry rejects the whole list.

    Entries may be mappings or objects using either camelCase or snake_case
    field names.
    """
    if entries is None or isinstance(entries, (str, bytes)) or not isinstance(entries, Iterable):
        raise ValidationError('availability_slots must be a list.')

    windows: list[WindowSpec] = []
    for index, entry in enumerate(entries, start=1):
        day = _read_field(entry, 'day')
        start_text = _read_field(entry, 'startTime', 'start_time')
        end_text = _read_field(entry, 'endTime', 'end_time')
        is_available = _read_field(entry, 'isAvailable', 'is_available')

        if not day or not start_text or not end_text:
            raise ValidationError(f'Slot {index}: each slot requires day, start_time and end_time.')

        if day not in DAY_NAMES:
            raise ValidationError(f'Slot {index}: invalid day: {day}.')

        try:
            start_minute = parse_hhmm(start_text)
            end_minute = parse_hhmm(end_text)
        except ValueError as exc:
            raise ValidationError(f'Slot {index}: start_time/end_time must be HH:mm.') from exc

        if start_minute >= end_minute:
            raise ValidationError(f'Slot {index}: start_time must be before end_time.')

        windows.append(
            WindowSpec(
                day=day,
                start_minute=start_minute,
                end_minute=end_minute,
                is_available=True if is_available is None else bool(is_available),
            )
        )

    return windows


def find_matching_window(windows: Iterable[Any], day: str, time_slot: str):
    """First enabled window on ``day`` containing ``time_slot``, else None.

    Overlapping windows are each checked on their own; any one match is enough.
    """
    for window in windows:
        if window.day != day or not window.is_available:
            continue
        if is_time_within(time_slot, window.start_time, window.end_time):
            return window
    return None
