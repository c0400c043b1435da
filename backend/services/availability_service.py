import logging
from typing import Any, Sequence

from backend.core.errors import ForbiddenError, NotFoundError, ValidationError
from backend.models.user import ROLE_DOCTOR, Doctor
from backend.repositories.users import UserDirectory
from backend.scheduling.availability import DAY_NAMES, validate_availability_slots

logger = logging.getLogger(__name__)


class AvailabilityService:
    def __init__(self, users: UserDirectory):
        self.users = users

    def set_availability(self, doctor_id: int, entries: Sequence[Any]) -> Doctor:
        """Replace the doctor's weekly windows with ``entries``.

        Nothing is written unless every entry is valid.
        """
        windows = validate_availability_slots(entries)

        doctor = self.users.get(doctor_id)
        if doctor is None or doctor.role != ROLE_DOCTOR:
            raise ForbiddenError('Only doctors can set availability.')

        doctor = self.users.replace_availability(doctor, windows)
        logger.info('Doctor %s availability replaced with %d window(s)', doctor_id, len(windows))
        return doctor

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.users.get(doctor_id)
        if doctor is None or doctor.role != ROLE_DOCTOR:
            raise NotFoundError('Doctor not found.')
        return doctor

    def list_available_doctors(self, day: str | None = None) -> list[Doctor]:
        """Doctors with at least one enabled window, optionally on ``day``."""
        if day is not None and day not in DAY_NAMES:
            raise ValidationError(f'Invalid day: {day}.')

        doctors = []
        for doctor in self.users.list_by_role(ROLE_DOCTOR):
            enabled = [
                window for window in doctor.availability_slots
                if window.is_available and (day is None or window.day == day)
            ]
            if enabled:
                doctors.append(doctor)
        return doctors
