"""
Appointment repository interface.

Appointments belong to the scheduling subsystem; the clinical record core reads
them and writes their status only.
"""

from typing import Any, Dict, List, Optional

from clinicrecords.domain.entities.appointment import Appointment


class AppointmentRepository:
    """Repository interface for reading appointments and writing their status."""

    async def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        raise NotImplementedError

    async def list_by_patient(self, patient_id: str) -> List[Appointment]:
        """All appointments of a patient in scheduling order."""
        raise NotImplementedError

    async def update(self, appointment_id: str, changes: Dict[str, Any]) -> Optional[Appointment]:
        """Keyed partial update; returns None when the appointment does not exist."""
        raise NotImplementedError
