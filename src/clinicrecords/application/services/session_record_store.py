"""Session record store: CRUD and enrichment of clinical session records."""

import logging
from typing import Any, Dict, List, Optional

from ...core.config import ClinicalSettings
from ...core.exceptions import NarrativeGenerationError, TranscriptionError
from ...core.utils.datetime_utils import get_current_timestamp
from ...core.utils.string_utils import generate_id, is_blank
from ...domain.entities.appointment import Appointment
from ...domain.entities.session import Session
from ...domain.entities.session_file import SessionFile
from ...domain.enums.statuses import (
    AppointmentStatus,
    NarrativeKind,
    OperationKind,
    SessionStatus,
)
from ...domain.errors import (
    AppointmentNotFoundError,
    InsufficientDataError,
    SessionFileNotFoundError,
    SessionNotFoundError,
    ValidationError,
)
from ...domain.value_objects.file_blob import AudioBlob, FileBlob
from ...observability.audit import audit_log_event
from ..dto.narrative_dto import NarrativeContext
from ..dto.session_dto import RecordingResult, SessionInput
from ..ports.repositories.appointment_repo import AppointmentRepository
from ..ports.repositories.session_repo import SessionRepository
from ..ports.services.file_storage_service import FileStorageService
from ..ports.services.narrative_service import NarrativeService
from ..ports.services.transcription_service import TranscriptionService
from .appointment_status_bridge import AppointmentStatusBridge
from .inflight import InFlightRegistry

logger = logging.getLogger(__name__)

APPOINTMENT_TO_SESSION_STATUS = {
    AppointmentStatus.DONE: SessionStatus.COMPLETED,
    AppointmentStatus.CANCELLED: SessionStatus.CANCELLED,
}


def _require_audio(blob: AudioBlob) -> None:
    if not blob.is_audio:
        raise ValidationError("content_type", "Expected an audio file", blob.content_type)


class SessionRecordStore:
    """Creates, edits and enriches session records.

    Status changes of a session linked to an appointment are mirrored onto the
    appointment through the AppointmentStatusBridge after the session write.
    """

    def __init__(
        self,
        session_repository: SessionRepository,
        appointment_repository: AppointmentRepository,
        status_bridge: AppointmentStatusBridge,
        narrative_service: NarrativeService,
        transcription_service: TranscriptionService,
        file_storage: FileStorageService,
        inflight: InFlightRegistry,
        settings: Optional[ClinicalSettings] = None,
    ):
        self._session_repository = session_repository
        self._appointment_repository = appointment_repository
        self._status_bridge = status_bridge
        self._narrative_service = narrative_service
        self._transcription_service = transcription_service
        self._file_storage = file_storage
        self._inflight = inflight
        self._settings = settings or ClinicalSettings()

    # CRUD
    async def create(self, data: SessionInput) -> Session:
        session = Session(
            session_id=generate_id(),
            patient_id=data.patient_id,
            session_date=data.session_date,
            appointment_id=data.appointment_id,
            duration_minutes=data.duration_minutes,
            status=data.status,
            detailed_notes=data.detailed_notes,
            summary=data.summary,
            clinical_observations=data.clinical_observations,
            transcription=data.transcription,
            cancellation_reason=data.cancellation_reason,
        )
        created = await self._session_repository.create(session)
        logger.info(f"Session {created.session_id} created for patient {created.patient_id}")
        return created

    async def get(self, session_id: str) -> Session:
        session = await self._session_repository.get_by_id(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def update(self, session_id: str, changes: Dict[str, Any]) -> Session:
        current = await self.get(session_id)
        normalized = Session.validate_changes(changes)
        status_changed = "status" in normalized and normalized["status"] != current.status

        normalized["updated_at"] = get_current_timestamp()
        updated = await self._session_repository.update(session_id, normalized)
        if updated is None:
            raise SessionNotFoundError(session_id)

        if status_changed and updated.appointment_id:
            await self._status_bridge.on_session_status_change(updated.appointment_id, updated.status)
        return updated

    async def delete(self, session_id: str) -> None:
        session = await self.get(session_id)
        await self._session_repository.delete(session_id)
        logger.info(f"Session {session_id} deleted")
        await audit_log_event(
            event="session_deleted",
            patient_id=session.patient_id,
            session_id=session_id,
            payload={"appointment_id": session.appointment_id},
        )

    async def list(self, patient_id: str) -> List[Session]:
        """Sessions of a patient, most recent session date first."""
        sessions = await self._session_repository.list_by_patient(patient_id)
        return sorted(sessions, key=lambda s: s.session_date, reverse=True)

    # Appointments
    async def import_from_appointment(self, appointment_id: str) -> Session:
        appointment = await self._appointment_repository.get_by_id(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id)

        status = APPOINTMENT_TO_SESSION_STATUS.get(appointment.status, SessionStatus.SCHEDULED)
        return await self.create(
            SessionInput(
                patient_id=appointment.patient_id,
                session_date=appointment.date_time,
                appointment_id=appointment.appointment_id,
                status=status,
            )
        )

    async def unlinked_appointments(self, patient_id: str) -> List[Appointment]:
        """Appointments of the patient that no session references."""
        appointments = await self._appointment_repository.list_by_patient(patient_id)
        unique: Dict[str, Appointment] = {}
        for appointment in appointments:
            unique.setdefault(appointment.appointment_id, appointment)

        linked = await self._session_repository.find_linked_appointment_ids(list(unique))
        return [a for a in unique.values() if a.appointment_id not in linked]

    # Enrichment
    async def generate_summary(self, session_id: str, kind: NarrativeKind, patient_name: str) -> Session:
        kind = NarrativeKind(kind)
        if kind not in (NarrativeKind.SUMMARY, NarrativeKind.INSIGHTS):
            raise ValidationError("kind", "Sessions support 'summary' or 'insights'", kind.value)

        session = await self.get(session_id)
        if is_blank(session.detailed_notes) and is_blank(session.transcription):
            raise InsufficientDataError(
                "Session has neither notes nor transcription to summarize",
                {"session_id": session_id},
            )

        async with self._inflight.track(session_id, OperationKind(kind.value)):
            result = await self._narrative_service.generate(
                kind,
                NarrativeContext(
                    patient_name=patient_name,
                    detailed_notes=session.detailed_notes,
                    transcription=session.transcription,
                ),
            )

            if kind == NarrativeKind.SUMMARY:
                if is_blank(result.content):
                    raise NarrativeGenerationError("Empty summary returned", {"session_id": session_id})
                changes: Dict[str, Any] = {"ai_generated_summary": result.content.strip()}
            else:
                if not result.insights:
                    raise NarrativeGenerationError("Empty insights returned", {"session_id": session_id})
                changes = {"ai_insights": result.insights}

            logger.info(f"Generated {kind.value} for session {session_id}")
            return await self.update(session_id, changes)

    async def transcribe_audio(self, session_id: str, blob: AudioBlob) -> Session:
        """Transcribe an uploaded audio file into the session."""
        _require_audio(blob)
        await self.get(session_id)
        async with self._inflight.track(session_id, OperationKind.TRANSCRIPTION):
            return await self._transcribe(session_id, blob, self._settings.imported_audio_separator)

    async def record_audio(self, session_id: str, blob: AudioBlob) -> RecordingResult:
        """Store a finished recording, then transcribe it into the session."""
        _require_audio(blob)
        await self.get(session_id)
        async with self._inflight.track(session_id, OperationKind.TRANSCRIPTION):
            stored = await self._file_storage.upload(session_id, blob, is_recording=True)
            session = await self._transcribe(session_id, blob, self._settings.recording_separator)
        return RecordingResult(file=stored, session=session)

    async def _transcribe(self, session_id: str, blob: AudioBlob, separator: str) -> Session:
        text = await self._transcription_service.transcribe(blob)
        if is_blank(text):
            raise TranscriptionError("Empty transcription returned", {"session_id": session_id})

        # Re-read: the session may have been edited while the audio was processed.
        session = await self.get(session_id)
        transcription = session.appended_transcription(text.strip(), separator)
        logger.info(f"Transcription stored for session {session_id} ({len(text)} chars)")
        return await self.update(session_id, {"transcription": transcription})

    # Files
    async def attach_file(self, session_id: str, blob: FileBlob) -> SessionFile:
        await self.get(session_id)
        stored = await self._file_storage.upload(session_id, blob, is_recording=False)
        logger.info(f"File {stored.file_id} attached to session {session_id}")
        return stored

    async def list_files(self, session_id: str) -> List[SessionFile]:
        await self.get(session_id)
        return await self._file_storage.list_files(session_id)

    async def remove_file(self, session_id: str, file_id: str) -> None:
        stored = await self._get_session_file(session_id, file_id)
        await self._file_storage.delete(stored.file_id, stored.storage_path)
        logger.info(f"File {file_id} removed from session {session_id}")

    async def file_url(self, session_id: str, file_id: str) -> str:
        stored = await self._get_session_file(session_id, file_id)
        return await self._file_storage.get_download_url(stored.storage_path)

    async def _get_session_file(self, session_id: str, file_id: str) -> SessionFile:
        stored = await self._file_storage.get_file(file_id)
        if stored is None or stored.session_id != session_id:
            raise SessionFileNotFoundError(file_id)
        return stored
