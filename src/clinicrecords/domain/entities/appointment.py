"""Appointment entity as seen by the clinical record core.

Appointments are owned by the scheduling subsystem; the core only reads them
and writes their status.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.utils.datetime_utils import ensure_utc
from ..enums.statuses import AppointmentStatus
from ..errors import ValidationError


@dataclass
class Appointment:
    """Scheduled appointment of a patient."""

    appointment_id: str
    patient_id: str
    date_time: datetime
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    payment_value: Optional[float] = None
    service: Optional[str] = None
    mode: Optional[str] = None

    def __post_init__(self) -> None:
        try:
            self.status = AppointmentStatus(self.status)
        except ValueError:
            raise ValidationError("status", "Unknown appointment status", self.status)
        self.date_time = ensure_utc(self.date_time)
