import pytest
from sqlalchemy import inspect

from backend import database


@pytest.fixture
def app_schema(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr('backend.database._appointment_schema_checked', False)
    monkeypatch.setattr('backend.database._session_schema_checked', False)
    database.Base.metadata.create_all(bind=database.engine)
    try:
        yield database.engine
    finally:
        database.Base.metadata.drop_all(bind=database.engine)


def test_ensure_database_ready_adds_lookup_indexes(app_schema) -> None:
    columns_before = {column['name'] for column in inspect(app_schema).get_columns('appointments')}

    database.ensure_database_ready()

    inspector = inspect(app_schema)
    assert {'idx_appointments_doctor_slot', 'idx_appointments_patient_date'} <= {
        index['name'] for index in inspector.get_indexes('appointments')
    }
    assert 'idx_sessions_participants_status' in {
        index['name'] for index in inspector.get_indexes('consultation_sessions')
    }
    assert {column['name'] for column in inspector.get_columns('appointments')} == columns_before


def test_ensure_database_ready_skips_missing_tables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('backend.database._appointment_schema_checked', False)
    monkeypatch.setattr('backend.database._session_schema_checked', False)

    database.ensure_database_ready()

    assert database._appointment_schema_checked is True
    assert database._session_schema_checked is True
