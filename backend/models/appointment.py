"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String

from backend.database import Base
from backend.scheduling.availability import format_hhmm, parse_hhmm

STATUS_PENDING = 'pending'
STATUS_CONFIRMED = 'confirmed'
STATUS_COMPLETED = 'completed'
STATUS_CANCELLED = 'cancelled'
APPOINTMENT_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_COMPLETED, STATUS_CANCELLED)
TERMINAL_APPOINTMENT_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)

CONSULTATION_TYPES = ('audio', 'video', 'chat')


class Appointment(Base):
    """Represents a booked appointment.

    ``time_slot`` always holds the "HH:mm" start of the booking; the length
    lives in ``duration_minutes`` and the "HH:mm - HH:mm" label is derived.
    """
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    appointment_date = Column(Date, nullable=False)
    time_slot = Column(String(5), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    consultation_type = Column(String, nullable=False)
    status = Column(String, nullable=False, default=STATUS_PENDING)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def time_slot_label(self) -> str:
        end_minute = parse_hhmm(self.time_slot) + (self.duration_minutes or 0)
        return f'{self.time_slot} - {format_hhmm(end_minute % (24 * 60))}'
