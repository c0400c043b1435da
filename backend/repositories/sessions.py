"""Session store - persistence for consultation sessions."""

from typing import Iterable, Optional, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.errors import ConflictError, NotFoundError
from backend.models.appointment import Appointment
from backend.models.consultation_session import ConsultationSession


class SessionStore(Protocol):
    def create(self, **fields) -> ConsultationSession: ...

    def get(self, record_id: int) -> Optional[ConsultationSession]: ...

    def get_by_session_id(self, session_id: str) -> Optional[ConsultationSession]: ...

    def find_by_appointment(
        self, appointment_id: int, exclude_statuses: Iterable[str] | None = None
    ) -> Optional[ConsultationSession]: ...

    def query(
        self, doctor_id: int | None = None, patient_id: int | None = None
    ) -> list[ConsultationSession]: ...

    def update(self, record_id: int, **patch) -> Optional[ConsultationSession]: ...

    def compare_and_set_status(
        self, record_id: int, expected: str, new_status: str, **patch
    ) -> Optional[ConsultationSession]: ...

    def transition_with_appointment(
        self,
        record_id: int,
        expected: str,
        new_status: str,
        appointment_status: str,
        **patch,
    ) -> Optional[ConsultationSession]: ...


class SqlSessionStore:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields) -> ConsultationSession:
        session = ConsultationSession(**fields)
        self.db.add(session)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError('Session id already in use; retry.') from exc
        self.db.refresh(session)
        return session

    def get(self, record_id: int) -> Optional[ConsultationSession]:
        return self.db.get(ConsultationSession, record_id)

    def get_by_session_id(self, session_id: str) -> Optional[ConsultationSession]:
        return self.db.query(ConsultationSession).filter(ConsultationSession.session_id == session_id).first()

    def find_by_appointment(
        self, appointment_id: int, exclude_statuses: Iterable[str] | None = None
    ) -> Optional[ConsultationSession]:
        query = self.db.query(ConsultationSession).filter(ConsultationSession.appointment_id == appointment_id)
        if exclude_statuses is not None:
            query = query.filter(ConsultationSession.status.not_in(list(exclude_statuses)))
        return query.order_by(ConsultationSession.id.desc()).first()

    def query(
        self, doctor_id: int | None = None, patient_id: int | None = None
    ) -> list[ConsultationSession]:
        query = self.db.query(ConsultationSession)
        if doctor_id is not None:
            query = query.filter(ConsultationSession.doctor_id == doctor_id)
        if patient_id is not None:
            query = query.filter(ConsultationSession.patient_id == patient_id)
        return query.order_by(ConsultationSession.created_at.desc(), ConsultationSession.id.desc()).all()

    def update(self, record_id: int, **patch) -> Optional[ConsultationSession]:
        updated = self.db.query(ConsultationSession).filter(ConsultationSession.id == record_id).update(
            patch, synchronize_session='fetch'
        )
        self.db.commit()
        if not updated:
            return None
        return self._reload(record_id)

    def compare_and_set_status(
        self, record_id: int, expected: str, new_status: str, **patch
    ) -> Optional[ConsultationSession]:
        updated = self.db.query(ConsultationSession).filter(
            ConsultationSession.id == record_id,
            ConsultationSession.status == expected,
        ).update({'status': new_status, **patch}, synchronize_session='fetch')
        self.db.commit()
        if not updated:
            return None
        return self._reload(record_id)

    def transition_with_appointment(
        self,
        record_id: int,
        expected: str,
        new_status: str,
        appointment_status: str,
        **patch,
    ) -> Optional[ConsultationSession]:
        """Move the session and its appointment in a single commit.

        Returns None when the session no longer holds ``expected``. Nothing is
        written unless both rows update.
        """
        session = self.get(record_id)
        if session is None:
            return None
        appointment_id = session.appointment_id

        try:
            updated = self.db.query(ConsultationSession).filter(
                ConsultationSession.id == record_id,
                ConsultationSession.status == expected,
            ).update({'status': new_status, **patch}, synchronize_session='fetch')
            if not updated:
                self.db.rollback()
                return None

            if not self._stage_appointment_status(appointment_id, appointment_status):
                self.db.rollback()
                raise NotFoundError('Appointment not found.')

            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        return self._reload(record_id)

    def _stage_appointment_status(self, appointment_id: int, status: str) -> int:
        return self.db.query(Appointment).filter(Appointment.id == appointment_id).update(
            {'status': status}, synchronize_session='fetch'
        )

    def _reload(self, record_id: int) -> Optional[ConsultationSession]:
        session = self.db.get(ConsultationSession, record_id)
        if session is not None:
            self.db.refresh(session)
        return session
