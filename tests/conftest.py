"""
Shared fixtures: services wired to in-memory repositories and fake AI collaborators.
"""

from datetime import datetime, timezone

import pytest

from clinicrecords.application.services.appointment_status_bridge import AppointmentStatusBridge
from clinicrecords.application.services.evolution_aggregator import EvolutionAggregator
from clinicrecords.application.services.inflight import InFlightRegistry
from clinicrecords.application.services.session_record_store import SessionRecordStore
from clinicrecords.application.services.treatment_plan_ledger import TreatmentPlanLedger
from clinicrecords.core.config import ClinicalSettings
from clinicrecords.domain.entities.patient import Patient
from clinicrecords.domain.entities.session import Session
from clinicrecords.domain.enums.statuses import SessionStatus

from fakes import (
    PATIENT_ID,
    FakeNarrativeService,
    FakePlanGenerationService,
    FakeTranscriptionService,
    InMemoryAppointmentRepository,
    InMemoryEvolutionReportRepository,
    InMemoryFileStorage,
    InMemoryPatientRepository,
    InMemoryPlanVersionRepository,
    InMemorySessionRepository,
    InMemoryTreatmentPlanRepository,
)


@pytest.fixture
def clinical_settings():
    return ClinicalSettings(
        evolution_min_sessions=2,
        evolution_max_sessions=10,
        default_estimated_sessions=12,
        recording_separator="\n\n--- Nova gravação ---\n",
        imported_audio_separator="\n\n--- Áudio importado ---\n",
    )


@pytest.fixture
def session_repo():
    return InMemorySessionRepository()


@pytest.fixture
def appointment_repo():
    return InMemoryAppointmentRepository()


@pytest.fixture
def patient_repo():
    return InMemoryPatientRepository([Patient(patient_id=PATIENT_ID, name="Ana Souza")])


@pytest.fixture
def plan_repo():
    return InMemoryTreatmentPlanRepository()


@pytest.fixture
def version_repo():
    return InMemoryPlanVersionRepository()


@pytest.fixture
def report_repo():
    return InMemoryEvolutionReportRepository()


@pytest.fixture
def narrative():
    return FakeNarrativeService()


@pytest.fixture
def plan_generator():
    return FakePlanGenerationService()


@pytest.fixture
def transcriber():
    return FakeTranscriptionService()


@pytest.fixture
def file_storage():
    return InMemoryFileStorage()


@pytest.fixture
def inflight():
    return InFlightRegistry()


@pytest.fixture
def store(session_repo, appointment_repo, narrative, transcriber, file_storage, inflight, clinical_settings):
    return SessionRecordStore(
        session_repository=session_repo,
        appointment_repository=appointment_repo,
        status_bridge=AppointmentStatusBridge(appointment_repo),
        narrative_service=narrative,
        transcription_service=transcriber,
        file_storage=file_storage,
        inflight=inflight,
        settings=clinical_settings,
    )


@pytest.fixture
def ledger(plan_repo, version_repo, session_repo, patient_repo, plan_generator, inflight, clinical_settings):
    return TreatmentPlanLedger(
        plan_repository=plan_repo,
        version_repository=version_repo,
        session_repository=session_repo,
        patient_repository=patient_repo,
        plan_generation_service=plan_generator,
        inflight=inflight,
        settings=clinical_settings,
    )


@pytest.fixture
def aggregator(store, ledger, patient_repo, report_repo, narrative, inflight, clinical_settings):
    return EvolutionAggregator(
        session_store=store,
        plan_ledger=ledger,
        patient_repository=patient_repo,
        report_repository=report_repo,
        narrative_service=narrative,
        inflight=inflight,
        settings=clinical_settings,
    )


@pytest.fixture
def add_session(session_repo):
    """Put a session straight into the repository."""

    def _add(session_id, day=1, month=3, status=SessionStatus.COMPLETED, notes="Notes", **kwargs):
        session = Session(
            session_id=session_id,
            patient_id=kwargs.pop("patient_id", PATIENT_ID),
            session_date=datetime(2024, month, day, 14, 0, tzinfo=timezone.utc),
            status=status,
            detailed_notes=notes,
            **kwargs,
        )
        session_repo.items[session_id] = session
        return session

    return _add
