from datetime import date, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user, require_role
from backend.database import database_errors, ensure_database_ready, get_db
from backend.models.user import ROLE_ADMIN, ROLE_DOCTOR, ROLE_PATIENT, User
from backend.repositories.appointments import SqlAppointmentStore
from backend.repositories.users import SqlUserDirectory
from backend.services.appointment_service import AppointmentService

router = APIRouter(tags=['appointments'])


class CreateAppointmentRequest(BaseModel):
    doctor_id: int
    appointment_date: date
    time_slot: str
    consultation_type: Literal['audio', 'video', 'chat']

    @field_validator('time_slot')
    @classmethod
    def normalize_time_slot(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('time_slot is required.')
        return normalized


class UpdateStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def normalize_status(cls, value: str) -> str:
        return value.strip().lower()


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    appointment_date: date
    time_slot: str
    time_slot_label: str
    duration_minutes: int
    consultation_type: str
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


def build_appointment_service(db: Session) -> AppointmentService:
    return AppointmentService(SqlUserDirectory(db), SqlAppointmentStore(db))


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    current_user: User = Depends(require_role(ROLE_PATIENT)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_appointment_service(db).book(
            patient_id=current_user.id,
            doctor_id=data.doctor_id,
            appointment_date=data.appointment_date,
            time_slot=data.time_slot,
            consultation_type=data.consultation_type,
        )


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    status_filter: str | None = Query(default=None, alias='status'),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_appointment_service(db).list_for(
            current_user,
            status=status_filter,
            date_from=date_from,
            date_to=date_to,
        )


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_appointment_service(db).get_for(current_user, appointment_id)


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: UpdateStatusRequest,
    current_user: User = Depends(require_role(ROLE_DOCTOR)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_appointment_service(db).update_status(appointment_id, current_user.id, data.status)


@router.patch('/{appointment_id}/status/admin', response_model=AppointmentResponse)
def admin_update_appointment_status(
    appointment_id: int,
    data: UpdateStatusRequest,
    current_user: User = Depends(require_role(ROLE_ADMIN)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_appointment_service(db).admin_update_status(appointment_id, data.status)
