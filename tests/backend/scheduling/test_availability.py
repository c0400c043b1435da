from datetime import date
from types import SimpleNamespace

import pytest

from backend.core.errors import ValidationError
from backend.scheduling.availability import (
    WindowSpec,
    find_matching_window,
    format_hhmm,
    is_time_within,
    normalize_time_slot,
    parse_hhmm,
    validate_availability_slots,
    weekday_name,
)


@pytest.mark.parametrize(
    ('time_slot', 'expected'),
    [
        ('09:00', True),
        ('12:30', True),
        ('16:59', True),
        ('17:00', False),
        ('08:59', False),
        ('23:59', False),
    ],
)
def test_is_time_within_is_start_inclusive_end_exclusive(time_slot: str, expected: bool) -> None:
    assert is_time_within(time_slot, '09:00', '17:00') is expected


@pytest.mark.parametrize(
    ('time_slot', 'window_start', 'window_end'),
    [
        ('9:00', '09:00', '17:00'),
        ('abc', '09:00', '17:00'),
        ('25:00', '00:00', '23:59'),
        ('09:00', 'nine', '17:00'),
        ('09:00', '09:00', None),
        (None, '09:00', '17:00'),
    ],
)
def test_is_time_within_returns_false_for_malformed_input(time_slot, window_start, window_end) -> None:
    assert is_time_within(time_slot, window_start, window_end) is False


def test_parse_hhmm_converts_to_minutes_since_midnight() -> None:
    assert parse_hhmm('00:00') == 0
    assert parse_hhmm('09:30') == 570
    assert parse_hhmm('23:59') == 1439


@pytest.mark.parametrize('value', ['24:00', '12:60', '7:5', '', '12-30'])
def test_parse_hhmm_rejects_out_of_range_and_malformed_text(value: str) -> None:
    with pytest.raises(ValueError):
        parse_hhmm(value)


def test_format_hhmm_pads_hours_and_minutes() -> None:
    assert format_hhmm(545) == '09:05'


def test_weekday_name_maps_dates_to_day_enum() -> None:
    assert weekday_name(date(2030, 1, 7)) == 'Monday'
    assert weekday_name(date(2030, 1, 13)) == 'Sunday'


def test_normalize_time_slot_uses_default_length_for_single_point() -> None:
    slot = normalize_time_slot('09:00', default_minutes=20)

    assert slot.start == '09:00'
    assert slot.start_minute == 540
    assert slot.duration_minutes == 20


@pytest.mark.parametrize(('value', 'duration'), [('09:00 - 09:45', 45), ('09:00-09:30', 30), (' 14:15 -  15:15 ', 60)])
def test_normalize_time_slot_reduces_ranges_to_start_and_length(value: str, duration: int) -> None:
    slot = normalize_time_slot(value, default_minutes=30)

    assert slot.duration_minutes == duration
    assert slot.start == value.strip().split('-')[0].strip()


@pytest.mark.parametrize('value', ['', '   ', 'noon', '09:30 - 09:00', '09:00 - 09:00', '09:00 - late'])
def test_normalize_time_slot_rejects_bad_slots(value: str) -> None:
    with pytest.raises(ValidationError):
        normalize_time_slot(value, default_minutes=30)


def test_validate_availability_slots_accepts_camel_and_snake_case_entries() -> None:
    windows = validate_availability_slots(
        [
            {'day': 'Monday', 'startTime': '09:00', 'endTime': '12:00'},
            {'day': 'Monday', 'start_time': '11:00', 'end_time': '17:00', 'is_available': False},
        ]
    )

    assert windows == [
        WindowSpec(day='Monday', start_minute=540, end_minute=720, is_available=True),
        WindowSpec(day='Monday', start_minute=660, end_minute=1020, is_available=False),
    ]


@pytest.mark.parametrize(
    ('bad_entry', 'message'),
    [
        ({'day': 'Monday', 'startTime': '09:00'}, 'Slot 2: each slot requires day, start_time and end_time.'),
        ({'day': 'Funday', 'startTime': '09:00', 'endTime': '10:00'}, 'Slot 2: invalid day: Funday.'),
        ({'day': 'Monday', 'startTime': '9am', 'endTime': '10:00'}, 'Slot 2: start_time/end_time must be HH:mm.'),
        ({'day': 'Monday', 'startTime': '10:00', 'endTime': '10:00'}, 'Slot 2: start_time must be before end_time.'),
        ({'day': 'Monday', 'startTime': '11:00', 'endTime': '10:00'}, 'Slot 2: start_time must be before end_time.'),
    ],
)
def test_validate_availability_slots_rejects_whole_list_on_any_bad_entry(bad_entry: dict, message: str) -> None:
    good_entry = {'day': 'Tuesday', 'startTime': '09:00', 'endTime': '17:00'}

    with pytest.raises(ValidationError) as exception_info:
        validate_availability_slots([good_entry, bad_entry])

    assert exception_info.value.message == message


def test_validate_availability_slots_requires_a_list() -> None:
    with pytest.raises(ValidationError):
        validate_availability_slots('Monday 09:00-17:00')


def _window(day: str, start: str, end: str, is_available: bool = True) -> SimpleNamespace:
    return SimpleNamespace(day=day, start_time=start, end_time=end, is_available=is_available)


def test_find_matching_window_checks_overlapping_windows_independently() -> None:
    windows = [
        _window('Monday', '09:00', '12:00'),
        _window('Monday', '11:00', '15:00'),
    ]

    assert find_matching_window(windows, 'Monday', '11:30') is windows[0]
    assert find_matching_window(windows, 'Monday', '13:00') is windows[1]
    assert find_matching_window(windows, 'Monday', '15:00') is None


def test_find_matching_window_skips_disabled_and_other_day_windows() -> None:
    windows = [
        _window('Monday', '09:00', '17:00', is_available=False),
        _window('Tuesday', '09:00', '17:00'),
    ]

    assert find_matching_window(windows, 'Monday', '10:00') is None
    assert find_matching_window(windows, 'Tuesday', '10:00') is windows[1]


def test_find_matching_window_ignores_malformed_windows() -> None:
    windows = [_window('Monday', 'morning', '17:00'), _window('Monday', '09:00', '17:00')]

    assert find_matching_window(windows, 'Monday', '10:00') is windows[1]
