from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user, require_role
from backend.database import database_errors, ensure_database_ready, get_db
from backend.models.user import ROLE_DOCTOR, ROLE_PATIENT, User
from backend.repositories.appointments import SqlAppointmentStore
from backend.repositories.sessions import SqlSessionStore
from backend.services.consultation_service import ConsultationService

router = APIRouter(tags=['consultations'])

MAX_SESSION_NOTES_LENGTH = 2000


def _clean_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_SESSION_NOTES_LENGTH:
        raise ValueError(f'Notes must be {MAX_SESSION_NOTES_LENGTH} characters or fewer.')

    return normalized


class InitiateSessionRequest(BaseModel):
    appointment_id: int


class SessionActionRequest(BaseModel):
    session_id: str


class EndSessionRequest(SessionActionRequest):
    notes: str | None = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _clean_notes(value)


class CancelSessionRequest(SessionActionRequest):
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        return _clean_notes(value)


class SessionResponse(BaseModel):
    id: int
    session_id: str
    appointment_id: int
    patient_id: int
    doctor_id: int
    consultation_type: str
    status: str
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: int
    notes: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class SimulatedMediaConfig(BaseModel):
    provider: str
    audio_enabled: bool
    video_enabled: bool
    chat_enabled: bool


class SessionTokenResponse(BaseModel):
    session_id: str
    consultation_type: str
    token: str
    simulated_config: SimulatedMediaConfig


def build_consultation_service(db: Session) -> ConsultationService:
    return ConsultationService(SqlAppointmentStore(db), SqlSessionStore(db))


@router.post('/initiate', response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def initiate_session(
    data: InitiateSessionRequest,
    current_user: User = Depends(require_role(ROLE_DOCTOR)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_consultation_service(db).initiate(data.appointment_id, current_user.id)


@router.post('/start', response_model=SessionResponse)
def start_session(
    data: SessionActionRequest,
    current_user: User = Depends(require_role(ROLE_DOCTOR, ROLE_PATIENT)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_consultation_service(db).start(data.session_id, current_user.id)


@router.post('/end', response_model=SessionResponse)
def end_session(
    data: EndSessionRequest,
    current_user: User = Depends(require_role(ROLE_DOCTOR)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_consultation_service(db).end(data.session_id, current_user.id, notes=data.notes)


@router.post('/cancel', response_model=SessionResponse)
def cancel_session(
    data: CancelSessionRequest,
    current_user: User = Depends(require_role(ROLE_DOCTOR, ROLE_PATIENT)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_consultation_service(db).cancel(data.session_id, current_user.id, reason=data.reason)


@router.get('', response_model=list[SessionResponse])
def list_sessions(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_consultation_service(db).list_for(current_user)


@router.get('/{session_id}', response_model=SessionResponse)
def get_session(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_consultation_service(db).get(session_id, current_user)


@router.get('/{session_id}/token', response_model=SessionTokenResponse)
def get_session_token(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_consultation_service(db).issue_token(session_id, current_user.id)
