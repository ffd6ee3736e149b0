"""
Session repository interface for managing clinical session records.
"""

from typing import Any, Dict, Iterable, List, Optional, Set

from clinicrecords.domain.entities.session import Session


class SessionRepository:
    """Repository interface for managing sessions."""

    async def create(self, session: Session) -> Session:
        """Persist a new session."""
        raise NotImplementedError

    async def get_by_id(self, session_id: str) -> Optional[Session]:
        """Find a session by ID."""
        raise NotImplementedError

    async def list_by_patient(self, patient_id: str) -> List[Session]:
        """All sessions of a patient, in no particular order."""
        raise NotImplementedError

    async def update(self, session_id: str, changes: Dict[str, Any]) -> Optional[Session]:
        """Write the given fields only; returns the stored session or None when unknown."""
        raise NotImplementedError

    async def delete(self, session_id: str) -> bool:
        """Delete a session by ID."""
        raise NotImplementedError

    async def find_linked_appointment_ids(self, appointment_ids: Iterable[str]) -> Set[str]:
        """Subset of ``appointment_ids`` referenced by any session."""
        raise NotImplementedError
