"""User model definitions.

Users live in one table keyed by ``role``; each role maps to its own class so
role-specific fields only exist on the records that carry them.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship, validates

from backend.database import Base

ROLE_PATIENT = 'patient'
ROLE_DOCTOR = 'doctor'
ROLE_ADMIN = 'admin'

GENDERS = ('male', 'female', 'other')

SPECIALIZATIONS = (
    'General Practitioner',
    'Cardiology',
    'Dermatology',
    'Orthopedics',
    'Gynecology',
    'Pediatrics',
    'Psychiatry',
    'Neurology',
    'Dentistry',
    'Other',
)


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String)
    role = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    __mapper_args__ = {'polymorphic_on': role}


class Patient(User):
    age = Column(Integer)
    gender = Column(String)
    village = Column(String)

    __mapper_args__ = {'polymorphic_identity': ROLE_PATIENT}

    @validates('gender')
    def validate_gender(self, key, value):
        if value is not None and value not in GENDERS:
            raise ValueError(f'Invalid gender: {value}')
        return value


class Doctor(User):
    specialization = Column(String)
    years_of_experience = Column(Integer)

    availability_slots = relationship(
        'AvailabilitySlot',
        back_populates='doctor',
        cascade='all, delete-orphan',
        order_by='AvailabilitySlot.position',
    )

    __mapper_args__ = {'polymorphic_identity': ROLE_DOCTOR}

    @validates('specialization')
    def validate_specialization(self, key, value):
        if value is not None and value not in SPECIALIZATIONS:
            raise ValueError(f'Invalid specialization: {value}')
        return value


class Admin(User):
    __mapper_args__ = {'polymorphic_identity': ROLE_ADMIN}
