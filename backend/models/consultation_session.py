"""Consultation session model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from backend.database import Base

SESSION_SCHEDULED = 'scheduled'
SESSION_LIVE = 'live'
SESSION_COMPLETED = 'completed'
SESSION_CANCELLED = 'cancelled'
SESSION_STATUSES = (SESSION_SCHEDULED, SESSION_LIVE, SESSION_COMPLETED, SESSION_CANCELLED)
TERMINAL_SESSION_STATUSES = (SESSION_COMPLETED, SESSION_CANCELLED)


class ConsultationSession(Base):
    """One telemedicine encounter created from a confirmed appointment."""
    __tablename__ = "consultation_sessions"

    id = Column(Integer, primary_key=True)
    session_id = Column(String, unique=True, index=True, nullable=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), index=True, nullable=False)
    # Copied from the appointment when the session is created.
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    consultation_type = Column(String, nullable=False, default='audio')
    status = Column(String, nullable=False, default=SESSION_SCHEDULED)
    start_time = Column(DateTime)
    end_time = Column(DateTime)
    duration = Column(Integer, nullable=False, default=0)
    notes = Column(String)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
