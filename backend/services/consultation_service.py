"""Consultation session lifecycle.

scheduled -> live -> completed, and scheduled|live -> cancelled. A session is
created from a confirmed appointment by its doctor; completing the session
completes the appointment as well.
"""

import logging
import math
import secrets
import time
from datetime import datetime, timedelta
from typing import Optional

from backend.core.errors import ConflictError, ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from backend.models.appointment import STATUS_COMPLETED, STATUS_CONFIRMED
from backend.models.consultation_session import (
    SESSION_CANCELLED,
    SESSION_COMPLETED,
    SESSION_LIVE,
    SESSION_SCHEDULED,
    TERMINAL_SESSION_STATUSES,
    ConsultationSession,
)
from backend.models.user import ROLE_ADMIN, ROLE_DOCTOR, ROLE_PATIENT, User
from backend.repositories.appointments import AppointmentStore
from backend.repositories.sessions import SessionStore
from backend.services.hooks import (
    SESSION_CANCELLED as SESSION_CANCELLED_EVENT,
    SESSION_COMPLETED as SESSION_COMPLETED_EVENT,
    SESSION_INITIATED,
    SESSION_STARTED,
    LifecycleHooks,
)
from backend.services.hooks import hooks as default_hooks

logger = logging.getLogger(__name__)

SESSION_ID_PREFIX = 'HS'
_BASE36_DIGITS = '0123456789abcdefghijklmnopqrstuvwxyz'


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError('base36 encoding expects a non-negative integer')
    if value == 0:
        return '0'

    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return ''.join(reversed(digits))


def generate_session_id(timestamp_ms: int | None = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    return f'{SESSION_ID_PREFIX}-{to_base36(timestamp_ms)}-{secrets.token_hex(8)}'


def duration_minutes(start_time: datetime, end_time: datetime) -> int:
    """Whole minutes between two instants, halves rounded up."""
    elapsed_ms = (end_time - start_time) // timedelta(milliseconds=1)
    return math.floor(elapsed_ms / 60000 + 0.5)


def media_capabilities(consultation_type: str) -> dict:
    return {
        'provider': 'simulated',
        'audio_enabled': consultation_type in ('audio', 'video'),
        'video_enabled': consultation_type == 'video',
        'chat_enabled': consultation_type in ('audio', 'video', 'chat'),
    }


class ConsultationService:
    def __init__(
        self,
        appointments: AppointmentStore,
        sessions: SessionStore,
        hooks: Optional[LifecycleHooks] = None,
    ):
        self.appointments = appointments
        self.sessions = sessions
        self.hooks = hooks if hooks is not None else default_hooks

    def initiate(self, appointment_id: int, doctor_id: int) -> ConsultationSession:
        if not appointment_id:
            raise ValidationError('appointment_id is required.')

        appointment = self.appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError('Appointment not found.')

        if appointment.doctor_id != doctor_id:
            raise ForbiddenError('Only assigned doctor can initiate consultation.')

        if appointment.status != STATUS_CONFIRMED:
            raise InvalidStateError('Appointment must be confirmed before starting consultation.')

        active = self.sessions.find_by_appointment(appointment_id, exclude_statuses=TERMINAL_SESSION_STATUSES)
        if active is not None:
            raise ConflictError('Active session already exists for this appointment.')

        session = self.sessions.create(
            session_id=generate_session_id(),
            appointment_id=appointment.id,
            patient_id=appointment.patient_id,
            doctor_id=appointment.doctor_id,
            consultation_type=appointment.consultation_type,
            status=SESSION_SCHEDULED,
        )

        logger.info('Session %s initiated for appointment %s', session.session_id, appointment.id)
        self.hooks.emit(SESSION_INITIATED, session=session)
        return session

    def start(self, session_id: str, user_id: int, now: datetime | None = None) -> ConsultationSession:
        session = self._get_participant_session(session_id, user_id, 'Unauthorized to start this session.')

        if session.status != SESSION_SCHEDULED:
            raise InvalidStateError('Session must be in scheduled status to start.')

        updated = self._transition(session, SESSION_LIVE, start_time=now or datetime.now())
        self.hooks.emit(SESSION_STARTED, session=updated)
        return updated

    def end(
        self,
        session_id: str,
        doctor_id: int,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> ConsultationSession:
        session = self._get_by_session_id(session_id)

        if session.doctor_id != doctor_id:
            raise ForbiddenError('Only assigned doctor can end session.')

        if session.status != SESSION_LIVE:
            raise InvalidStateError('Only live sessions can be ended.')

        end_time = now or datetime.now()
        patch = {
            'end_time': end_time,
            'duration': duration_minutes(session.start_time, end_time),
        }
        if notes:
            patch['notes'] = notes

        # The appointment follows the session whatever state it is in.
        updated = self.sessions.transition_with_appointment(
            session.id, SESSION_LIVE, SESSION_COMPLETED, STATUS_COMPLETED, **patch
        )
        if updated is None:
            raise ConflictError('Session was modified concurrently; reload and retry.')

        logger.info(
            'Session %s status %s -> %s; appointment %s completed',
            updated.session_id, SESSION_LIVE, SESSION_COMPLETED, updated.appointment_id,
        )

        self.hooks.emit(SESSION_COMPLETED_EVENT, session=updated)
        return updated

    def cancel(self, session_id: str, user_id: int, reason: str | None = None) -> ConsultationSession:
        session = self._get_participant_session(session_id, user_id, 'Unauthorized to cancel this session.')

        if session.status in TERMINAL_SESSION_STATUSES:
            raise InvalidStateError('Cannot cancel completed or already cancelled sessions.')

        patch = {'notes': reason} if reason else {}
        updated = self._transition(session, SESSION_CANCELLED, **patch)
        self.hooks.emit(SESSION_CANCELLED_EVENT, session=updated)
        return updated

    def issue_token(self, session_id: str, user_id: int) -> dict:
        session = self._get_participant_session(session_id, user_id, 'Unauthorized to access this session.')

        if session.status != SESSION_LIVE:
            raise InvalidStateError('Session is not live.')

        return {
            'session_id': session.session_id,
            'consultation_type': session.consultation_type,
            'token': secrets.token_hex(32),
            'simulated_config': media_capabilities(session.consultation_type),
        }

    def get(self, session_id: str, user: User) -> ConsultationSession:
        session = self._get_by_session_id(session_id)
        if user.role != ROLE_ADMIN and user.id not in (session.patient_id, session.doctor_id):
            raise ForbiddenError('Unauthorized to access this session.')
        return session

    def list_for(self, user: User) -> list[ConsultationSession]:
        if user.role == ROLE_ADMIN:
            return self.sessions.query()
        if user.role == ROLE_DOCTOR:
            return self.sessions.query(doctor_id=user.id)
        if user.role == ROLE_PATIENT:
            return self.sessions.query(patient_id=user.id)
        raise ForbiddenError('Forbidden.')

    def _transition(self, session: ConsultationSession, status: str, **patch) -> ConsultationSession:
        previous = session.status
        updated = self.sessions.compare_and_set_status(session.id, previous, status, **patch)
        if updated is None:
            raise ConflictError('Session was modified concurrently; reload and retry.')

        logger.info('Session %s status %s -> %s', updated.session_id, previous, status)
        return updated

    def _get_by_session_id(self, session_id: str) -> ConsultationSession:
        if not session_id:
            raise ValidationError('session_id is required.')

        session = self.sessions.get_by_session_id(session_id)
        if session is None:
            raise NotFoundError('Session not found.')
        return session

    def _get_participant_session(self, session_id: str, user_id: int, message: str) -> ConsultationSession:
        session = self._get_by_session_id(session_id)
        if user_id not in (session.doctor_id, session.patient_id):
            raise ForbiddenError(message)
        return session
