"""Booking-time and confirmation-time slot checks.

Booking and confirmation are separate race windows: several patients may
hold pending bookings on one slot only if they slipped past the booking
check concurrently, and the confirmation check makes sure at most one of
them ever becomes confirmed.
"""

import logging
from datetime import date, datetime, timedelta

from backend.core.errors import ConflictError, NotFoundError, ValidationError
from backend.models.appointment import STATUS_CANCELLED, STATUS_CONFIRMED, Appointment
from backend.models.user import ROLE_DOCTOR, Doctor
from backend.repositories.appointments import AppointmentStore
from backend.repositories.users import UserDirectory
from backend.scheduling.availability import TimeSlot, find_matching_window, weekday_name

logger = logging.getLogger(__name__)


class SlotConflictChecker:
    def __init__(self, users: UserDirectory, appointments: AppointmentStore):
        self.users = users
        self.appointments = appointments

    def check_booking(self, doctor_id: int, appointment_date: date, slot: TimeSlot, now: datetime) -> Doctor:
        """Run the booking checks in order; the first failure wins.

        Returns the doctor record so the caller does not look it up twice.
        """
        scheduled_start = datetime.combine(appointment_date, datetime.min.time()) + timedelta(
            minutes=slot.start_minute
        )
        if scheduled_start <= now:
            raise ValidationError('Appointment must be in the future.')

        doctor = self.users.get(doctor_id)
        if doctor is None or doctor.role != ROLE_DOCTOR:
            raise NotFoundError('Specified doctor not found.')

        day = weekday_name(appointment_date)
        if find_matching_window(doctor.availability_slots or [], day, slot.start) is None:
            raise ValidationError('Doctor not available at requested day/time.')

        existing = self.appointments.find_in_slot(
            doctor_id,
            appointment_date,
            slot.start,
            exclude_statuses=[STATUS_CANCELLED],
        )
        if existing is not None:
            logger.info(
                'Rejected booking for doctor %s on %s at %s: held by appointment %s',
                doctor_id, appointment_date, slot.start, existing.id,
            )
            raise ConflictError('Time slot already booked for this doctor.')

        return doctor

    def check_confirmation(self, appointment: Appointment) -> None:
        conflict = self.appointments.find_in_slot(
            appointment.doctor_id,
            appointment.appointment_date,
            appointment.time_slot,
            statuses=[STATUS_CONFIRMED],
            exclude_id=appointment.id,
        )
        if conflict is not None:
            logger.info(
                'Rejected confirmation of appointment %s: slot already confirmed by appointment %s',
                appointment.id, conflict.id,
            )
            raise ConflictError('Conflict: another appointment already confirmed for this slot.')
