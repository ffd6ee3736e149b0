"""
Pydantic schemas for session and appointment endpoints.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...application.dto.session_dto import SessionInput
from ...domain.enums.statuses import AppointmentStatus, NarrativeKind, SessionStatus


class CreateSessionRequest(BaseModel):
    """Request schema for registering a session."""

    patient_id: str = Field(..., min_length=1, description="Patient ID")
    session_date: datetime = Field(..., description="Date and time of the session")
    appointment_id: Optional[str] = Field(None, description="Linked appointment ID")
    duration_minutes: Optional[int] = Field(None, gt=0, description="Session length in minutes")
    status: SessionStatus = Field(SessionStatus.SCHEDULED, description="Session status")
    detailed_notes: Optional[str] = None
    summary: Optional[str] = None
    clinical_observations: Optional[str] = None
    transcription: Optional[str] = None
    cancellation_reason: Optional[str] = None

    def to_input(self) -> SessionInput:
        return SessionInput(**self.model_dump())


class UpdateSessionRequest(BaseModel):
    """Partial session edit; only the fields present in the body are written."""

    appointment_id: Optional[str] = None
    session_date: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, gt=0)
    status: Optional[SessionStatus] = None
    detailed_notes: Optional[str] = None
    summary: Optional[str] = None
    clinical_observations: Optional[str] = None
    transcription: Optional[str] = None
    cancellation_reason: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ImportSessionRequest(BaseModel):
    appointment_id: str = Field(..., min_length=1, description="Appointment to create the session from")


class GenerateSummaryRequest(BaseModel):
    kind: NarrativeKind = Field(NarrativeKind.SUMMARY, description="summary or insights")
    patient_name: Optional[str] = Field(None, description="Defaults to the name in the patient directory")


class SessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    session_id: str
    patient_id: str
    session_date: datetime
    appointment_id: Optional[str] = None
    duration_minutes: Optional[int] = None
    status: SessionStatus
    detailed_notes: Optional[str] = None
    summary: Optional[str] = None
    clinical_observations: Optional[str] = None
    transcription: Optional[str] = None
    ai_generated_summary: Optional[str] = None
    ai_insights: Optional[Dict[str, Any]] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class SessionFileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    file_id: str
    session_id: str
    file_name: str
    file_type: str
    file_size: int
    storage_path: str
    is_recording: bool
    created_at: datetime


class FileUrlResponse(BaseModel):
    file_id: str
    url: str


class RecordingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    file: SessionFileResponse
    session: SessionResponse


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    appointment_id: str
    patient_id: str
    date_time: datetime
    status: AppointmentStatus
    payment_value: Optional[float] = None
    service: Optional[str] = None
    mode: Optional[str] = None
