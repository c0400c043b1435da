"""User directory - lookups the booking core needs about users."""

from typing import Optional, Protocol, Sequence

from sqlalchemy.orm import Session, selectinload

from backend.models.availability import AvailabilitySlot
from backend.models.user import ROLE_DOCTOR, Doctor, User
from backend.scheduling.availability import WindowSpec


class UserDirectory(Protocol):
    def get(self, user_id: int) -> Optional[User]: ...

    def list_by_role(self, role: str) -> list[User]: ...

    def replace_availability(self, doctor: Doctor, windows: Sequence[WindowSpec]) -> Doctor: ...

    def add(self, user: User) -> User: ...


class SqlUserDirectory:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def list_by_role(self, role: str) -> list[User]:
        if role == ROLE_DOCTOR:
            query = self.db.query(Doctor).options(selectinload(Doctor.availability_slots))
        else:
            query = self.db.query(User).filter(User.role == role)
        return query.order_by(User.id.asc()).all()

    def replace_availability(self, doctor: Doctor, windows: Sequence[WindowSpec]) -> Doctor:
        doctor.availability_slots = [
            AvailabilitySlot(
                position=position,
                day=window.day,
                start_minute=window.start_minute,
                end_minute=window.end_minute,
                is_available=window.is_available,
            )
            for position, window in enumerate(windows)
        ]
        self.db.commit()
        self.db.refresh(doctor)
        return doctor

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
