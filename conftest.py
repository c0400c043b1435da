import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')

from backend.database import Base  # noqa: E402
from backend.models import appointment, availability, consultation_session  # noqa: E402,F401
from backend.models.availability import AvailabilitySlot  # noqa: E402
from backend.models.user import Admin, Doctor, Patient  # noqa: E402
from backend.repositories.appointments import SqlAppointmentStore  # noqa: E402
from backend.repositories.sessions import SqlSessionStore  # noqa: E402
from backend.repositories.users import SqlUserDirectory  # noqa: E402
from backend.services.appointment_service import AppointmentService  # noqa: E402
from backend.services.consultation_service import ConsultationService  # noqa: E402
from backend.services.hooks import LifecycleHooks  # noqa: E402


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def hooks() -> LifecycleHooks:
    return LifecycleHooks()


@pytest.fixture
def doctor(db) -> Doctor:
    record = Doctor(
        name='Dr. Asha Rao',
        email='asha@clinic.test',
        phone='9000000002',
        specialization='General Practitioner',
        years_of_experience=8,
        availability_slots=[
            AvailabilitySlot(position=0, day='Monday', start_minute=9 * 60, end_minute=17 * 60, is_available=True),
        ],
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def other_doctor(db) -> Doctor:
    record = Doctor(
        name='Dr. Ravi Menon',
        email='ravi@clinic.test',
        phone='9000000004',
        specialization='Pediatrics',
        years_of_experience=3,
        availability_slots=[
            AvailabilitySlot(position=0, day='Tuesday', start_minute=10 * 60, end_minute=12 * 60, is_available=True),
        ],
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def patient(db) -> Patient:
    record = Patient(
        name='Meena Kumari',
        email='meena@village.test',
        phone='9000000001',
        age=34,
        gender='female',
        village='Rampur',
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def other_patient(db) -> Patient:
    record = Patient(
        name='Suresh Patel',
        email='suresh@village.test',
        phone='9000000005',
        age=51,
        gender='male',
        village='Kheda',
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def admin(db) -> Admin:
    record = Admin(name='Clinic Admin', email='admin@clinic.test', phone='9000000003')
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def appointment_store(db) -> SqlAppointmentStore:
    return SqlAppointmentStore(db)


@pytest.fixture
def session_store(db) -> SqlSessionStore:
    return SqlSessionStore(db)


@pytest.fixture
def appointment_service(db, appointment_store, hooks) -> AppointmentService:
    return AppointmentService(SqlUserDirectory(db), appointment_store, hooks=hooks)


@pytest.fixture
def consultation_service(appointment_store, session_store, hooks) -> ConsultationService:
    return ConsultationService(appointment_store, session_store, hooks=hooks)
