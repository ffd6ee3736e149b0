"""
MongoDB models of the scheduling subsystem read by the clinical record core.
"""

from datetime import datetime
from typing import Optional

from beanie import Document, Indexed
from pydantic import Field


class PatientMongo(Document):
    patient_id: Indexed(str, unique=True) = Field(..., description="Patient ID")
    name: str = Field(..., description="Patient full name")

    class Settings:
        name = "patients"


class AppointmentMongo(Document):
    """Appointment as stored by the scheduling subsystem."""

    appointment_id: Indexed(str, unique=True) = Field(..., description="Appointment ID")
    patient_id: str = Field(..., description="Patient ID reference")
    date_time: datetime
    status: str = Field(default="scheduled")
    payment_value: Optional[float] = None
    service: Optional[str] = None
    mode: Optional[str] = None

    class Settings:
        name = "appointments"
        indexes = [
            "patient_id",
            "date_time",
        ]
