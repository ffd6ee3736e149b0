"""
Patient directory interface.
"""

from typing import Optional

from clinicrecords.domain.entities.patient import Patient


class PatientRepository:
    """Read-only access to patient identity data."""

    async def find_by_id(self, patient_id: str) -> Optional[Patient]:
        raise NotImplementedError
