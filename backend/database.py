import logging
from contextlib import contextmanager
from threading import Lock

from fastapi import HTTPException, status
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from backend.core import config

logger = logging.getLogger(__name__)

connect_args = {'check_same_thread': False} if config.DATABASE_URL.startswith('sqlite') else {}

engine = create_engine(config.DATABASE_URL, echo=config.SQL_ECHO, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False
_session_schema_checked = False


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_appointments_doctor_slot '
                    'ON appointments(doctor_id, appointment_date, time_slot)'
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_patient_date ON appointments(patient_id, appointment_date)')
            )

        _appointment_schema_checked = True


def ensure_session_schema() -> None:
    global _session_schema_checked

    if _session_schema_checked:
        return

    with _schema_lock:
        if _session_schema_checked:
            return

        inspector = inspect(engine)

        if 'consultation_sessions' not in inspector.get_table_names():
            _session_schema_checked = True
            return

        with engine.begin() as connection:
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_sessions_participants_status '
                    'ON consultation_sessions(patient_id, doctor_id, status)'
                )
            )

        _session_schema_checked = True


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
        ensure_session_schema()
    except SQLAlchemyError as exc:
        logger.exception('Schema check failed.')
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def database_errors(db: Session):
    """Roll back and answer 503 when the store fails mid-request."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Database operation failed.')
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc
