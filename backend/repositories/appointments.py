"""Appointment store - persistence for appointment records."""

from datetime import date
from typing import Iterable, Optional, Protocol

from sqlalchemy.orm import Session

from backend.models.appointment import Appointment


class AppointmentStore(Protocol):
    def create(self, **fields) -> Appointment: ...

    def get(self, appointment_id: int) -> Optional[Appointment]: ...

    def query(
        self,
        doctor_id: int | None = None,
        patient_id: int | None = None,
        status: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Appointment]: ...

    def find_in_slot(
        self,
        doctor_id: int,
        day: date,
        time_slot: str,
        statuses: Iterable[str] | None = None,
        exclude_statuses: Iterable[str] | None = None,
        exclude_id: int | None = None,
    ) -> Optional[Appointment]: ...

    def update(self, appointment_id: int, **patch) -> Optional[Appointment]: ...

    def compare_and_set_status(
        self, appointment_id: int, expected: str, new_status: str, **patch
    ) -> Optional[Appointment]: ...

    def all(self) -> list[Appointment]: ...


class SqlAppointmentStore:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields) -> Appointment:
        appointment = Appointment(**fields)
        self.db.add(appointment)
        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    def get(self, appointment_id: int) -> Optional[Appointment]:
        return self.db.get(Appointment, appointment_id)

    def query(
        self,
        doctor_id: int | None = None,
        patient_id: int | None = None,
        status: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Appointment]:
        query = self.db.query(Appointment)
        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)
        if patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)
        if status is not None:
            query = query.filter(Appointment.status == status)
        if date_from is not None:
            query = query.filter(Appointment.appointment_date >= date_from)
        if date_to is not None:
            query = query.filter(Appointment.appointment_date <= date_to)
        return query.order_by(Appointment.appointment_date.asc(), Appointment.time_slot.asc()).all()

    def find_in_slot(
        self,
        doctor_id: int,
        day: date,
        time_slot: str,
        statuses: Iterable[str] | None = None,
        exclude_statuses: Iterable[str] | None = None,
        exclude_id: int | None = None,
    ) -> Optional[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == day,
            Appointment.time_slot == time_slot,
        )
        if statuses is not None:
            query = query.filter(Appointment.status.in_(list(statuses)))
        if exclude_statuses is not None:
            query = query.filter(Appointment.status.not_in(list(exclude_statuses)))
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.first()

    def update(self, appointment_id: int, **patch) -> Optional[Appointment]:
        updated = self.db.query(Appointment).filter(Appointment.id == appointment_id).update(
            patch, synchronize_session='fetch'
        )
        self.db.commit()
        if not updated:
            return None
        return self._reload(appointment_id)

    def compare_and_set_status(
        self, appointment_id: int, expected: str, new_status: str, **patch
    ) -> Optional[Appointment]:
        """Write ``new_status`` only if the row still holds ``expected``.

        Returns None when another writer got there first.
        """
        updated = self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.status == expected,
        ).update({'status': new_status, **patch}, synchronize_session='fetch')
        self.db.commit()
        if not updated:
            return None
        return self._reload(appointment_id)

    def all(self) -> list[Appointment]:
        return self.query()

    def _reload(self, appointment_id: int) -> Optional[Appointment]:
        appointment = self.db.get(Appointment, appointment_id)
        if appointment is not None:
            self.db.refresh(appointment)
        return appointment
