from datetime import date, datetime

import pytest

from backend.core.errors import ConflictError, NotFoundError, ValidationError
from backend.repositories.users import SqlUserDirectory
from backend.scheduling.availability import normalize_time_slot
from backend.scheduling.conflicts import SlotConflictChecker

MONDAY = date(2030, 1, 7)
NOW = datetime(2029, 12, 1, 8, 0)


@pytest.fixture
def checker(db, appointment_store) -> SlotConflictChecker:
    return SlotConflictChecker(SqlUserDirectory(db), appointment_store)


def _hold(appointment_store, patient, doctor, status: str, time_slot: str = '09:00', day: date = MONDAY):
    return appointment_store.create(
        patient_id=patient.id,
        doctor_id=doctor.id,
        appointment_date=day,
        time_slot=time_slot,
        duration_minutes=30,
        consultation_type='audio',
        status=status,
    )


def test_check_booking_returns_doctor_for_open_slot(checker, doctor) -> None:
    result = checker.check_booking(doctor.id, MONDAY, normalize_time_slot('09:00'), NOW)

    assert result.id == doctor.id


@pytest.mark.parametrize('now', [datetime(2030, 1, 7, 9, 0), datetime(2030, 1, 7, 9, 1), datetime(2030, 2, 1)])
def test_check_booking_rejects_slots_not_strictly_in_future(checker, doctor, now: datetime) -> None:
    with pytest.raises(ValidationError) as exception_info:
        checker.check_booking(doctor.id, MONDAY, normalize_time_slot('09:00'), now)

    assert exception_info.value.message == 'Appointment must be in the future.'


def test_check_booking_rejects_unknown_doctor(checker) -> None:
    with pytest.raises(NotFoundError):
        checker.check_booking(999, MONDAY, normalize_time_slot('09:00'), NOW)


def test_check_booking_rejects_user_without_doctor_role(checker, patient) -> None:
    with pytest.raises(NotFoundError) as exception_info:
        checker.check_booking(patient.id, MONDAY, normalize_time_slot('09:00'), NOW)

    assert exception_info.value.message == 'Specified doctor not found.'


def test_check_booking_future_check_runs_before_doctor_lookup(checker) -> None:
    with pytest.raises(ValidationError):
        checker.check_booking(999, date(2020, 1, 6), normalize_time_slot('09:00'), NOW)


@pytest.mark.parametrize('time_slot', ['17:00', '08:59', '18:30'])
def test_check_booking_rejects_time_outside_windows(checker, doctor, time_slot: str) -> None:
    with pytest.raises(ValidationError) as exception_info:
        checker.check_booking(doctor.id, MONDAY, normalize_time_slot(time_slot), NOW)

    assert exception_info.value.message == 'Doctor not available at requested day/time.'


def test_check_booking_rejects_day_without_windows(checker, doctor) -> None:
    tuesday = date(2030, 1, 8)

    with pytest.raises(ValidationError):
        checker.check_booking(doctor.id, tuesday, normalize_time_slot('09:00'), NOW)


def test_check_booking_ignores_disabled_windows(db, checker, doctor) -> None:
    doctor.availability_slots[0].is_available = False
    db.commit()

    with pytest.raises(ValidationError):
        checker.check_booking(doctor.id, MONDAY, normalize_time_slot('09:00'), NOW)


@pytest.mark.parametrize('status', ['pending', 'confirmed', 'completed'])
def test_check_booking_rejects_slot_held_by_live_appointment(
    checker, appointment_store, doctor, patient, status: str
) -> None:
    _hold(appointment_store, patient, doctor, status)

    with pytest.raises(ConflictError) as exception_info:
        checker.check_booking(doctor.id, MONDAY, normalize_time_slot('09:00 - 09:30'), NOW)

    assert exception_info.value.message == 'Time slot already booked for this doctor.'


def test_check_booking_allows_slot_held_only_by_cancelled_appointment(
    checker, appointment_store, doctor, patient
) -> None:
    _hold(appointment_store, patient, doctor, 'cancelled')

    checker.check_booking(doctor.id, MONDAY, normalize_time_slot('09:00'), NOW)


def test_check_booking_ignores_other_slots_days_and_doctors(
    checker, appointment_store, doctor, other_doctor, patient
) -> None:
    _hold(appointment_store, patient, doctor, 'confirmed', time_slot='09:30')
    _hold(appointment_store, patient, doctor, 'confirmed', day=date(2030, 1, 14))
    _hold(appointment_store, patient, other_doctor, 'confirmed')

    checker.check_booking(doctor.id, MONDAY, normalize_time_slot('09:00'), NOW)


def test_check_confirmation_rejects_when_other_appointment_confirmed(
    checker, appointment_store, doctor, patient, other_patient
) -> None:
    _hold(appointment_store, patient, doctor, 'confirmed')
    pending = _hold(appointment_store, other_patient, doctor, 'pending')

    with pytest.raises(ConflictError):
        checker.check_confirmation(pending)


def test_check_confirmation_ignores_other_pending_holds_and_itself(
    checker, appointment_store, doctor, patient, other_patient
) -> None:
    _hold(appointment_store, patient, doctor, 'pending')
    already_confirmed = _hold(appointment_store, other_patient, doctor, 'confirmed')

    checker.check_confirmation(already_confirmed)
