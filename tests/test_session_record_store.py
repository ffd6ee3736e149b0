"""
Session record store: CRUD, appointment import and AI enrichment.
"""

from datetime import datetime, timezone

import pytest

from clinicrecords.application.dto.session_dto import SessionInput
from clinicrecords.core.exceptions import NarrativeGenerationError
from clinicrecords.domain.entities.appointment import Appointment
from clinicrecords.domain.enums.statuses import (
    AppointmentStatus,
    NarrativeKind,
    OperationKind,
    SessionStatus,
)
from clinicrecords.domain.errors import (
    AppointmentNotFoundError,
    InsufficientDataError,
    OperationInProgressError,
    SessionFileNotFoundError,
    SessionNotFoundError,
    ValidationError,
)
from clinicrecords.domain.value_objects.file_blob import FileBlob

from fakes import PATIENT_ID

WHEN = datetime(2024, 3, 4, 14, 0, tzinfo=timezone.utc)


def _appointment(appointment_id="a1", status=AppointmentStatus.SCHEDULED, patient_id=PATIENT_ID):
    return Appointment(appointment_id=appointment_id, patient_id=patient_id, date_time=WHEN, status=status)


def _audio(data=b"RIFF....WAVE", name="take.wav"):
    return FileBlob(data=data, content_type="audio/wav", file_name=name)


@pytest.mark.asyncio
async def test_create_and_get(store):
    created = await store.create(SessionInput(patient_id=PATIENT_ID, session_date=WHEN, duration_minutes=50))

    fetched = await store.get(created.session_id)
    assert fetched.patient_id == PATIENT_ID
    assert fetched.status == SessionStatus.SCHEDULED
    assert fetched.duration_minutes == 50


@pytest.mark.asyncio
async def test_create_rejects_non_positive_duration(store):
    with pytest.raises(ValidationError):
        await store.create(SessionInput(patient_id=PATIENT_ID, session_date=WHEN, duration_minutes=0))


@pytest.mark.asyncio
async def test_get_unknown_session(store):
    with pytest.raises(SessionNotFoundError):
        await store.get("nope")


@pytest.mark.asyncio
async def test_list_is_most_recent_first(store, add_session):
    add_session("s1", day=1)
    add_session("s3", day=20)
    add_session("s2", day=10)
    add_session("other", day=15, patient_id="patient-2")

    sessions = await store.list(PATIENT_ID)

    assert [s.session_id for s in sessions] == ["s3", "s2", "s1"]


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields(store, add_session):
    add_session("s1")
    with pytest.raises(ValidationError):
        await store.update("s1", {"patient_id": "someone-else"})


@pytest.mark.asyncio
async def test_imported_session_completion_marks_appointment_done(store, appointment_repo):
    appointment_repo.add(_appointment("a1"))

    session = await store.import_from_appointment("a1")
    assert session.appointment_id == "a1"
    assert session.status == SessionStatus.SCHEDULED
    assert session.session_date == WHEN

    await store.update(session.session_id, {"status": SessionStatus.COMPLETED})

    appointment = await appointment_repo.get_by_id("a1")
    assert appointment.status == AppointmentStatus.DONE


@pytest.mark.asyncio
async def test_import_takes_status_from_appointment(store, appointment_repo):
    appointment_repo.add(_appointment("done", status=AppointmentStatus.DONE))
    appointment_repo.add(_appointment("cancelled", status=AppointmentStatus.CANCELLED))
    appointment_repo.add(_appointment("confirmed", status=AppointmentStatus.CONFIRMED))

    assert (await store.import_from_appointment("done")).status == SessionStatus.COMPLETED
    assert (await store.import_from_appointment("cancelled")).status == SessionStatus.CANCELLED
    assert (await store.import_from_appointment("confirmed")).status == SessionStatus.SCHEDULED


@pytest.mark.asyncio
async def test_import_unknown_appointment(store):
    with pytest.raises(AppointmentNotFoundError):
        await store.import_from_appointment("missing")


@pytest.mark.asyncio
async def test_status_change_without_link_touches_no_appointment(store, appointment_repo, add_session):
    add_session("s1", status=SessionStatus.SCHEDULED)

    updated = await store.update("s1", {"status": "no_show"})

    assert updated.status == SessionStatus.NO_SHOW
    assert appointment_repo.updates == []


@pytest.mark.asyncio
async def test_unchanged_status_is_not_mirrored(store, appointment_repo, add_session):
    appointment_repo.add(_appointment("a1"))
    add_session("s1", status=SessionStatus.COMPLETED, appointment_id="a1")

    await store.update("s1", {"status": SessionStatus.COMPLETED, "summary": "Calmer"})

    assert appointment_repo.updates == []


@pytest.mark.asyncio
async def test_no_show_cancels_linked_appointment(store, appointment_repo, add_session):
    appointment_repo.add(_appointment("a1"))
    add_session("s1", status=SessionStatus.SCHEDULED, appointment_id="a1")

    await store.update("s1", {"status": SessionStatus.NO_SHOW})

    assert (await appointment_repo.get_by_id("a1")).status == AppointmentStatus.CANCELLED


@pytest.mark.asyncio
async def test_missing_linked_appointment_does_not_fail_update(store, add_session):
    add_session("s1", status=SessionStatus.SCHEDULED, appointment_id="gone")

    updated = await store.update("s1", {"status": SessionStatus.COMPLETED})

    assert updated.status == SessionStatus.COMPLETED


@pytest.mark.asyncio
async def test_failed_appointment_write_keeps_session_update(store, appointment_repo, add_session):
    appointment_repo.add(_appointment("a1"))
    appointment_repo.fail_update = True
    add_session("s1", status=SessionStatus.SCHEDULED, appointment_id="a1")

    updated = await store.update("s1", {"status": SessionStatus.COMPLETED})

    assert updated.status == SessionStatus.COMPLETED
    assert (await store.get("s1")).status == SessionStatus.COMPLETED
    assert (await appointment_repo.get_by_id("a1")).status == AppointmentStatus.SCHEDULED


@pytest.mark.asyncio
async def test_delete_leaves_appointment_alone(store, appointment_repo, add_session):
    appointment_repo.add(_appointment("a1", status=AppointmentStatus.DONE))
    add_session("s1", appointment_id="a1")

    await store.delete("s1")

    with pytest.raises(SessionNotFoundError):
        await store.get("s1")
    assert (await appointment_repo.get_by_id("a1")).status == AppointmentStatus.DONE


@pytest.mark.asyncio
async def test_unlinked_appointments_are_deduplicated(store, appointment_repo, add_session):
    appointment_repo.add(_appointment("a1"))
    appointment_repo.add(_appointment("a2"))
    appointment_repo.add(_appointment("a2"))
    appointment_repo.add(_appointment("a3", patient_id="patient-2"))
    add_session("s1", appointment_id="a1")

    unlinked = await store.unlinked_appointments(PATIENT_ID)

    assert [a.appointment_id for a in unlinked] == ["a2"]


@pytest.mark.asyncio
async def test_summary_requires_notes_or_transcription(store, narrative, add_session):
    add_session("s1", notes="   ")

    with pytest.raises(InsufficientDataError):
        await store.generate_summary("s1", NarrativeKind.SUMMARY, "Ana")
    assert narrative.calls == []


@pytest.mark.asyncio
async def test_summary_is_stored(store, narrative, add_session):
    add_session("s1", notes="Talked about sleep")
    narrative.content = "  Patient reports better sleep.  "

    session = await store.generate_summary("s1", NarrativeKind.SUMMARY, "Ana")

    assert session.ai_generated_summary == "Patient reports better sleep."
    kind, context = narrative.calls[0]
    assert kind == NarrativeKind.SUMMARY
    assert context.patient_name == "Ana"
    assert context.detailed_notes == "Talked about sleep"


@pytest.mark.asyncio
async def test_insights_are_stored(store, add_session):
    add_session("s1", notes=None, transcription="Long transcript")

    session = await store.generate_summary("s1", NarrativeKind.INSIGHTS, "Ana")

    assert session.ai_insights == {"keyPoints": ["Sleeps better"]}


@pytest.mark.asyncio
async def test_empty_summary_is_an_error(store, narrative, add_session):
    add_session("s1")
    narrative.content = " "

    with pytest.raises(NarrativeGenerationError):
        await store.generate_summary("s1", NarrativeKind.SUMMARY, "Ana")
    assert (await store.get("s1")).ai_generated_summary is None


@pytest.mark.asyncio
async def test_evolution_is_not_a_session_narrative(store, add_session):
    add_session("s1")
    with pytest.raises(ValidationError):
        await store.generate_summary("s1", NarrativeKind.EVOLUTION, "Ana")


@pytest.mark.asyncio
async def test_duplicate_summary_request_is_rejected(store, inflight, add_session):
    add_session("s1")

    async with inflight.track("s1", OperationKind.SUMMARY):
        with pytest.raises(OperationInProgressError):
            await store.generate_summary("s1", NarrativeKind.SUMMARY, "Ana")

    assert not inflight.is_in_flight("s1", OperationKind.SUMMARY)


@pytest.mark.asyncio
async def test_transcription_is_appended(store, transcriber, add_session, clinical_settings):
    add_session("s1", transcription="First part")
    transcriber.text = "Second part"

    session = await store.transcribe_audio("s1", _audio())

    assert session.transcription == "First part" + clinical_settings.imported_audio_separator + "Second part"
    assert "--- Áudio importado ---" in session.transcription


@pytest.mark.asyncio
async def test_first_transcription_has_no_separator(store, add_session):
    add_session("s1")

    session = await store.transcribe_audio("s1", _audio())

    assert session.transcription == "Patient talked about work."


@pytest.mark.asyncio
async def test_transcription_rejects_non_audio(store, transcriber, add_session):
    add_session("s1")

    with pytest.raises(ValidationError):
        await store.transcribe_audio("s1", FileBlob(data=b"%PDF", content_type="application/pdf", file_name="a.pdf"))
    assert transcriber.calls == []


@pytest.mark.asyncio
async def test_recording_is_stored_then_transcribed(store, file_storage, add_session):
    add_session("s1")

    result = await store.record_audio("s1", _audio())

    assert result.file.is_recording
    assert result.file.session_id == "s1"
    assert result.session.transcription == "Patient talked about work."
    assert list(file_storage.files) == [result.file.file_id]


@pytest.mark.asyncio
async def test_files_are_scoped_to_their_session(store, file_storage, add_session):
    add_session("s1")
    add_session("s2")
    stored = await store.attach_file("s1", FileBlob(data=b"%PDF", content_type="application/pdf", file_name="a.pdf"))

    assert [f.file_id for f in await store.list_files("s1")] == [stored.file_id]
    assert (await store.file_url("s1", stored.file_id)).startswith("https://storage.test/")
    with pytest.raises(SessionFileNotFoundError):
        await store.remove_file("s2", stored.file_id)

    await store.remove_file("s1", stored.file_id)
    assert file_storage.deleted == [stored.storage_path]
    assert await store.list_files("s1") == []


@pytest.mark.asyncio
async def test_attach_to_unknown_session(store):
    with pytest.raises(SessionNotFoundError):
        await store.attach_file("nope", FileBlob(data=b"x", content_type="text/plain", file_name="a.txt"))


@pytest.mark.asyncio
async def test_recording_is_appended_after_recording_separator(store, transcriber, add_session, clinical_settings):
    add_session("s1", transcription="Imported part")
    transcriber.text = "Recorded part"

    result = await store.record_audio("s1", _audio())

    assert result.session.transcription == "Imported part" + clinical_settings.recording_separator + "Recorded part"
    assert "--- Nova gravação ---" in result.session.transcription


@pytest.mark.asyncio
async def test_duplicate_recording_stores_nothing(store, inflight, file_storage, transcriber, add_session):
    add_session("s1")

    async with inflight.track("s1", OperationKind.TRANSCRIPTION):
        with pytest.raises(OperationInProgressError):
            await store.record_audio("s1", _audio())

    assert file_storage.files == {}
    assert transcriber.calls == []
