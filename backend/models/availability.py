"""Availability model definitions."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from backend.database import Base
from backend.scheduling.availability import format_hhmm


class AvailabilitySlot(Base):
    """A recurring weekly window during which a doctor accepts bookings."""
    __tablename__ = "availability_slots"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    day = Column(String, nullable=False)
    start_minute = Column(Integer, nullable=False)
    end_minute = Column(Integer, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)

    doctor = relationship('Doctor', back_populates='availability_slots')

    @property
    def start_time(self) -> str:
        return format_hhmm(self.start_minute)

    @property
    def end_time(self) -> str:
        return format_hhmm(self.end_minute)
