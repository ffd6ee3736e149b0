"""Session record endpoints: CRUD, appointment import, AI enrichment and files."""

import logging
from typing import List

from fastapi import APIRouter, File, Request, UploadFile, status

from ...core.config import get_settings
from ...domain.enums.statuses import OperationKind
from ...domain.errors import PatientNotFoundError
from ...domain.value_objects.file_blob import FileBlob
from ..deps import InFlightDep, PatientRepositoryDep, SessionStoreDep
from ..errors import PayloadTooLargeError, ValidationError
from ..schemas.common import ApiResponse, ErrorResponse
from ..schemas.sessions import (
    CreateSessionRequest,
    FileUrlResponse,
    GenerateSummaryRequest,
    ImportSessionRequest,
    RecordingResponse,
    SessionFileResponse,
    SessionResponse,
    UpdateSessionRequest,
)
from ..utils.responses import ok

router = APIRouter(prefix="/sessions", tags=["Sessions"])
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Session not found"},
    409: {"model": ErrorResponse, "description": "Operation already in progress"},
    422: {"model": ErrorResponse, "description": "Invalid input or insufficient data"},
    502: {"model": ErrorResponse, "description": "External service failure"},
}


async def read_upload(upload: UploadFile) -> FileBlob:
    """Read an uploaded file into a FileBlob, enforcing the configured size limit."""
    data = await upload.read()
    if not data:
        raise ValidationError("Uploaded file is empty", {"file_name": upload.filename})
    max_bytes = get_settings().azure_blob.max_file_size_mb * 1024 * 1024
    if len(data) > max_bytes:
        raise PayloadTooLargeError(
            f"File exceeds the {get_settings().azure_blob.max_file_size_mb} MB limit",
            {"file_name": upload.filename, "size": len(data)},
        )
    logger.info(f"Received upload {upload.filename} ({len(data)} bytes)")
    return FileBlob(
        data=data,
        content_type=upload.content_type or "application/octet-stream",
        file_name=upload.filename or "upload",
    )


@router.post(
    "/",
    response_model=ApiResponse[SessionResponse],
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_session(request: Request, body: CreateSessionRequest, store: SessionStoreDep):
    session = await store.create(body.to_input())
    return ok(request, data=SessionResponse.model_validate(session), message="Created")


@router.post(
    "/import",
    response_model=ApiResponse[SessionResponse],
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def import_session(request: Request, body: ImportSessionRequest, store: SessionStoreDep):
    """Create a session from an appointment; the session status follows the appointment's."""
    session = await store.import_from_appointment(body.appointment_id)
    return ok(request, data=SessionResponse.model_validate(session), message="Created")


@router.get("/{session_id}", response_model=ApiResponse[SessionResponse], responses=ERROR_RESPONSES)
async def get_session(request: Request, session_id: str, store: SessionStoreDep):
    session = await store.get(session_id)
    return ok(request, data=SessionResponse.model_validate(session))


@router.patch("/{session_id}", response_model=ApiResponse[SessionResponse], responses=ERROR_RESPONSES)
async def update_session(
    request: Request, session_id: str, body: UpdateSessionRequest, store: SessionStoreDep
):
    """
    Edit a session.

    A status change is mirrored onto the linked appointment, if any.
    """
    session = await store.update(session_id, body.changes())
    return ok(request, data=SessionResponse.model_validate(session), message="Updated")


@router.delete("/{session_id}", response_model=ApiResponse[dict], responses=ERROR_RESPONSES)
async def delete_session(request: Request, session_id: str, store: SessionStoreDep):
    await store.delete(session_id)
    return ok(request, data={"session_id": session_id}, message="Deleted")


@router.post("/{session_id}/summary", response_model=ApiResponse[SessionResponse], responses=ERROR_RESPONSES)
async def generate_summary(
    request: Request,
    session_id: str,
    body: GenerateSummaryRequest,
    store: SessionStoreDep,
    patients: PatientRepositoryDep,
):
    """Generate the AI summary or structured insights of a session."""
    patient_name = body.patient_name
    if not patient_name:
        session = await store.get(session_id)
        patient = await patients.find_by_id(session.patient_id)
        if patient is None:
            raise PatientNotFoundError(session.patient_id)
        patient_name = patient.name
    session = await store.generate_summary(session_id, body.kind, patient_name)
    return ok(request, data=SessionResponse.model_validate(session), message="Generated")


@router.post(
    "/{session_id}/transcription",
    response_model=ApiResponse[SessionResponse],
    responses=ERROR_RESPONSES,
)
async def transcribe_audio(
    request: Request, session_id: str, store: SessionStoreDep, audio: UploadFile = File(...)
):
    """Transcribe an audio file and append the text to the session transcription."""
    blob = await read_upload(audio)
    session = await store.transcribe_audio(session_id, blob)
    return ok(request, data=SessionResponse.model_validate(session), message="Transcribed")


@router.post(
    "/{session_id}/recordings",
    response_model=ApiResponse[RecordingResponse],
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def upload_recording(
    request: Request, session_id: str, store: SessionStoreDep, audio: UploadFile = File(...)
):
    """Store a finished recording as a session file, then transcribe it."""
    blob = await read_upload(audio)
    result = await store.record_audio(session_id, blob)
    return ok(request, data=RecordingResponse.model_validate(result), message="Recorded")


@router.get(
    "/{session_id}/operations/{kind}",
    response_model=ApiResponse[dict],
    responses=ERROR_RESPONSES,
)
async def operation_status(request: Request, session_id: str, kind: OperationKind, inflight: InFlightDep):
    return ok(request, data={"operation": kind.value, "in_flight": inflight.is_in_flight(session_id, kind)})


# Files
@router.post(
    "/{session_id}/files",
    response_model=ApiResponse[SessionFileResponse],
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def attach_file(request: Request, session_id: str, store: SessionStoreDep, file: UploadFile = File(...)):
    blob = await read_upload(file)
    stored = await store.attach_file(session_id, blob)
    return ok(request, data=SessionFileResponse.model_validate(stored), message="Uploaded")


@router.get(
    "/{session_id}/files",
    response_model=ApiResponse[List[SessionFileResponse]],
    responses=ERROR_RESPONSES,
)
async def list_files(request: Request, session_id: str, store: SessionStoreDep):
    files = await store.list_files(session_id)
    return ok(request, data=[SessionFileResponse.model_validate(f) for f in files])


@router.get(
    "/{session_id}/files/{file_id}/url",
    response_model=ApiResponse[FileUrlResponse],
    responses=ERROR_RESPONSES,
)
async def file_url(request: Request, session_id: str, file_id: str, store: SessionStoreDep):
    url = await store.file_url(session_id, file_id)
    return ok(request, data=FileUrlResponse(file_id=file_id, url=url))


@router.delete(
    "/{session_id}/files/{file_id}",
    response_model=ApiResponse[dict],
    responses=ERROR_RESPONSES,
)
async def remove_file(request: Request, session_id: str, file_id: str, store: SessionStoreDep):
    await store.remove_file(session_id, file_id)
    return ok(request, data={"file_id": file_id}, message="Deleted")
