"""Appointment lifecycle: pending -> confirmed -> completed, or -> cancelled."""

import logging
from datetime import date, datetime
from typing import Optional

from backend.core.errors import ConflictError, ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from backend.models.appointment import (
    APPOINTMENT_STATUSES,
    CONSULTATION_TYPES,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
    STATUS_PENDING,
    TERMINAL_APPOINTMENT_STATUSES,
    Appointment,
)
from backend.models.user import ROLE_ADMIN, ROLE_DOCTOR, ROLE_PATIENT, User
from backend.repositories.appointments import AppointmentStore
from backend.repositories.users import UserDirectory
from backend.scheduling.availability import normalize_time_slot
from backend.scheduling.conflicts import SlotConflictChecker
from backend.services.hooks import APPOINTMENT_BOOKED, APPOINTMENT_STATUS_CHANGED, LifecycleHooks
from backend.services.hooks import hooks as default_hooks

logger = logging.getLogger(__name__)

# Forward order of the lifecycle; moving to a lower rank is allowed but logged.
_STATUS_RANK = {
    STATUS_PENDING: 0,
    STATUS_CONFIRMED: 1,
    STATUS_COMPLETED: 2,
    STATUS_CANCELLED: 2,
}


class AppointmentService:
    def __init__(
        self,
        users: UserDirectory,
        appointments: AppointmentStore,
        hooks: Optional[LifecycleHooks] = None,
    ):
        self.users = users
        self.appointments = appointments
        self.checker = SlotConflictChecker(users, appointments)
        self.hooks = hooks if hooks is not None else default_hooks

    def book(
        self,
        patient_id: int,
        doctor_id: int,
        appointment_date: date,
        time_slot: str,
        consultation_type: str,
        now: datetime | None = None,
    ) -> Appointment:
        if not doctor_id or appointment_date is None or not time_slot or not consultation_type:
            raise ValidationError('doctor_id, appointment_date, time_slot, consultation_type are required.')

        if consultation_type not in CONSULTATION_TYPES:
            raise ValidationError(f'Invalid consultation_type: {consultation_type}.')

        slot = normalize_time_slot(time_slot)
        now = now or datetime.now()

        self.checker.check_booking(doctor_id, appointment_date, slot, now)

        appointment = self.appointments.create(
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=appointment_date,
            time_slot=slot.start,
            duration_minutes=slot.duration_minutes,
            consultation_type=consultation_type,
            status=STATUS_PENDING,
        )
        logger.info(
            'Appointment %s booked by patient %s with doctor %s on %s at %s',
            appointment.id, patient_id, doctor_id, appointment_date, appointment.time_slot,
        )
        self.hooks.emit(APPOINTMENT_BOOKED, appointment=appointment)
        return appointment

    def update_status(self, appointment_id: int, doctor_id: int, status: str) -> Appointment:
        """Doctor-driven transition, guarded by ownership and the slot check."""
        self._validate_status(status)

        appointment = self._get(appointment_id)

        if appointment.doctor_id != doctor_id:
            raise ForbiddenError('Forbidden: only assigned doctor can update status.')

        previous = appointment.status
        if previous in TERMINAL_APPOINTMENT_STATUSES and status != previous:
            raise InvalidStateError(f'Appointment is already {previous}.')

        if status == STATUS_CONFIRMED:
            self.checker.check_confirmation(appointment)

        if _STATUS_RANK[status] < _STATUS_RANK[previous]:
            logger.warning('Appointment %s moved backwards from %s to %s', appointment_id, previous, status)

        return self._transition(appointment, previous, status)

    def admin_update_status(self, appointment_id: int, status: str) -> Appointment:
        """Privileged override: no ownership, conflict or terminal-state checks."""
        self._validate_status(status)

        appointment = self._get(appointment_id)
        previous = appointment.status
        logger.warning('Admin override of appointment %s from %s to %s', appointment_id, previous, status)
        return self._transition(appointment, previous, status)

    def get_for(self, user: User, appointment_id: int) -> Appointment:
        appointment = self._get(appointment_id)
        if user.role != ROLE_ADMIN and user.id not in (appointment.patient_id, appointment.doctor_id):
            raise ForbiddenError('You can only view your own appointments.')
        return appointment

    def list_for(
        self,
        user: User,
        status: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Appointment]:
        if status is not None:
            self._validate_status(status)
        if date_from and date_to and date_from > date_to:
            raise ValidationError('date_from must not be after date_to.')

        filters = {'status': status, 'date_from': date_from, 'date_to': date_to}
        if user.role == ROLE_ADMIN:
            if not any(filters.values()):
                return self.appointments.all()
            return self.appointments.query(**filters)
        if user.role == ROLE_DOCTOR:
            return self.appointments.query(doctor_id=user.id, **filters)
        if user.role == ROLE_PATIENT:
            return self.appointments.query(patient_id=user.id, **filters)
        raise ForbiddenError('Forbidden.')

    def _transition(self, appointment: Appointment, previous: str, status: str) -> Appointment:
        updated = self.appointments.compare_and_set_status(appointment.id, previous, status)
        if updated is None:
            raise ConflictError('Appointment was modified concurrently; reload and retry.')

        logger.info('Appointment %s status %s -> %s', updated.id, previous, status)
        self.hooks.emit(APPOINTMENT_STATUS_CHANGED, appointment=updated, previous_status=previous)
        return updated

    def _get(self, appointment_id: int) -> Appointment:
        appointment = self.appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError('Appointment not found.')
        return appointment

    @staticmethod
    def _validate_status(status: str) -> None:
        if not status or status not in APPOINTMENT_STATUSES:
            raise ValidationError('Invalid status.')
