"""Session DTOs passed between the API layer and the session record store."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...domain.entities.session import Session
from ...domain.entities.session_file import SessionFile
from ...domain.enums.statuses import SessionStatus


@dataclass
class SessionInput:
    """Data for registering a new session."""

    patient_id: str
    session_date: datetime
    appointment_id: Optional[str] = None
    duration_minutes: Optional[int] = None
    status: SessionStatus = SessionStatus.SCHEDULED
    detailed_notes: Optional[str] = None
    summary: Optional[str] = None
    clinical_observations: Optional[str] = None
    transcription: Optional[str] = None
    cancellation_reason: Optional[str] = None


@dataclass
class RecordingResult:
    """Stored recording and the session with its updated transcription."""

    file: SessionFile
    session: Session
