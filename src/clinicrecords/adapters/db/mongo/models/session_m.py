"""
MongoDB Beanie models for clinical sessions and their files.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from beanie import Document, Indexed
from pydantic import Field


class SessionMongo(Document):
    """MongoDB model for a clinical session."""

    session_id: Indexed(str, unique=True) = Field(..., description="Session ID")
    patient_id: str = Field(..., description="Patient ID reference")
    appointment_id: Optional[str] = Field(None, description="Linked appointment (weak reference)")
    session_date: datetime
    duration_minutes: Optional[int] = None
    status: str = Field(default="scheduled")
    detailed_notes: Optional[str] = None
    summary: Optional[str] = None
    clinical_observations: Optional[str] = None
    transcription: Optional[str] = None
    ai_generated_summary: Optional[str] = None
    ai_insights: Optional[Dict[str, Any]] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Settings:
        name = "sessions"
        indexes = [
            "patient_id",
            "appointment_id",
            "session_date",
        ]


class SessionFileMongo(Document):
    """Metadata of a file stored in blob storage for a session."""

    file_id: Indexed(str, unique=True) = Field(..., description="File ID")
    session_id: str = Field(..., description="Session ID reference")
    file_name: str = Field(..., description="Original filename")
    file_type: str = Field(..., description="MIME type of the file")
    file_size: int = Field(..., description="File size in bytes")
    storage_path: str = Field(..., description="Blob path inside the container")
    container_name: str = Field(..., description="Azure Storage container name")
    is_recording: bool = Field(default=False)
    created_at: datetime

    class Settings:
        name = "session_files"
        indexes = [
            "session_id",
            "created_at",
        ]
