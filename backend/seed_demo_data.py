"""Create demo users and print a bearer token for each.

Usage:
    python -m backend.seed_demo_data
"""
import logging
import sys
from datetime import date, timedelta

from sqlalchemy.exc import SQLAlchemyError

from backend.auth.jwt_handler import create_access_token
from backend.core.errors import DomainError
from backend.database import Base, SessionLocal, engine
from backend.models import appointment, availability, consultation_session  # noqa: F401
from backend.models.user import Admin, Doctor, Patient, User
from backend.repositories.appointments import SqlAppointmentStore
from backend.repositories.users import SqlUserDirectory
from backend.services.appointment_service import AppointmentService
from backend.services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)


def build_demo_users() -> dict[str, User]:
    return {
        'patient': Patient(
            name='Demo Patient',
            email='patient@demo.com',
            phone='9000000001',
            age=30,
            gender='female',
            village='Demo Village',
        ),
        'doctor': Doctor(
            name='Demo Doctor',
            email='doctor@demo.com',
            phone='9000000002',
            specialization='General Practitioner',
            years_of_experience=5,
        ),
        'admin': Admin(name='Demo Admin', email='admin@demo.com', phone='9000000003'),
    }


DEMO_WINDOWS = [
    {'day': day, 'startTime': '09:00', 'endTime': '17:00', 'isAvailable': True}
    for day in ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday')
]


def next_weekday(start: date) -> date:
    current = start + timedelta(days=1)
    while current.weekday() >= 5:
        current += timedelta(days=1)
    return current


def seed(db) -> dict[str, User]:
    directory = SqlUserDirectory(db)
    seeded: dict[str, User] = {}

    for role, demo_user in build_demo_users().items():
        existing = db.query(User).filter(User.email == demo_user.email).first()
        seeded[role] = existing or directory.add(demo_user)

    doctor = seeded['doctor']
    if not doctor.availability_slots:
        AvailabilityService(directory).set_availability(doctor.id, DEMO_WINDOWS)

    appointments = AppointmentService(directory, SqlAppointmentStore(db))
    day = next_weekday(date.today())
    for time_slot in ('09:00 - 09:30', '10:00 - 10:30'):
        try:
            booked = appointments.book(seeded['patient'].id, doctor.id, day, time_slot, 'audio')
        except DomainError as exc:
            logger.info('Skipping demo appointment at %s: %s', time_slot, exc.message)
            continue
        appointments.update_status(booked.id, doctor.id, 'confirmed')

    return seeded


def main() -> None:
    logging.basicConfig(level=logging.INFO)

    try:
        Base.metadata.create_all(bind=engine)
        db = SessionLocal()
        try:
            seeded = seed(db)
            tokens = {role: create_access_token(u.id, role=role) for role, u in seeded.items()}
        finally:
            db.close()
    except SQLAlchemyError as exc:
        print("Seeding failed:", exc, file=sys.stderr)
        sys.exit(1)

    for role, token in tokens.items():
        print(f"{role}: {token}")


if __name__ == "__main__":
    main()
