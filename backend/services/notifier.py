"""Log-only notifier subscribed to the lifecycle hooks.

Real delivery channels (email, SMS, push) plug in the same way.
"""

import logging

from backend.services.hooks import (
    APPOINTMENT_BOOKED,
    APPOINTMENT_STATUS_CHANGED,
    SESSION_CANCELLED,
    SESSION_COMPLETED,
    SESSION_INITIATED,
    SESSION_STARTED,
    LifecycleHooks,
)

logger = logging.getLogger(__name__)


def log_appointment_event(event: str, appointment, previous_status: str | None = None, **_) -> None:
    if previous_status is None:
        logger.info(
            '[notify] %s: appointment %s for patient %s with doctor %s on %s at %s',
            event, appointment.id, appointment.patient_id, appointment.doctor_id,
            appointment.appointment_date, appointment.time_slot,
        )
    else:
        logger.info(
            '[notify] %s: appointment %s %s -> %s',
            event, appointment.id, previous_status, appointment.status,
        )


def log_session_event(event: str, session, **_) -> None:
    logger.info(
        '[notify] %s: session %s (appointment %s) is %s',
        event, session.session_id, session.appointment_id, session.status,
    )


def register_log_notifier(hooks: LifecycleHooks) -> None:
    hooks.subscribe(APPOINTMENT_BOOKED, log_appointment_event)
    hooks.subscribe(APPOINTMENT_STATUS_CHANGED, log_appointment_event)
    for event in (SESSION_INITIATED, SESSION_STARTED, SESSION_COMPLETED, SESSION_CANCELLED):
        hooks.subscribe(event, log_session_event)
