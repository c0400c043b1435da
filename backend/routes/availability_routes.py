from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user, require_role
from backend.database import database_errors, ensure_database_ready, get_db
from backend.models.user import ROLE_DOCTOR, User
from backend.repositories.users import SqlUserDirectory
from backend.services.availability_service import AvailabilityService

router = APIRouter(tags=['availability'])


class AvailabilityWindowRequest(BaseModel):
    # Loose fields: the whole-list validation reports which entry is bad.
    day: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    is_available: bool = True


class SetAvailabilityRequest(BaseModel):
    availability_slots: list[AvailabilityWindowRequest]


class AvailabilityWindowResponse(BaseModel):
    day: str
    start_time: str
    end_time: str
    is_available: bool

    class Config:
        from_attributes = True


class DoctorAvailabilityResponse(BaseModel):
    id: int
    name: str
    email: str
    specialization: str | None = None
    years_of_experience: int | None = None
    availability_slots: list[AvailabilityWindowResponse]

    class Config:
        from_attributes = True


def build_availability_service(db: Session) -> AvailabilityService:
    return AvailabilityService(SqlUserDirectory(db))


@router.put('', response_model=DoctorAvailabilityResponse)
def set_availability(
    data: SetAvailabilityRequest,
    current_user: User = Depends(require_role(ROLE_DOCTOR)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_availability_service(db).set_availability(current_user.id, data.availability_slots)


@router.get('/doctors', response_model=list[DoctorAvailabilityResponse])
def list_available_doctors(
    day: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_availability_service(db).list_available_doctors(day)


@router.get('/doctors/{doctor_id}', response_model=DoctorAvailabilityResponse)
def get_doctor_availability(
    doctor_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return build_availability_service(db).get_doctor(doctor_id)
