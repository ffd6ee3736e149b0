"""FastAPI dependency providers.

Every provider is cached, so one process shares a single instance of each
repository, adapter and service (and therefore one in-flight registry).
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from ..adapters.db.mongo.repositories.scheduling_repository import (
    MongoAppointmentRepository,
    MongoPatientRepository,
)
from ..adapters.db.mongo.repositories.session_file_repository import SessionFileRepository
from ..adapters.db.mongo.repositories.session_repository import MongoSessionRepository
from ..adapters.db.mongo.repositories.treatment_plan_repository import (
    MongoEvolutionReportRepository,
    MongoPlanVersionRepository,
    MongoTreatmentPlanRepository,
)
from ..adapters.external.narrative_service_openai import OpenAINarrativeService
from ..adapters.external.plan_generation_service_openai import OpenAIPlanGenerationService
from ..adapters.external.transcription_service_openai import OpenAITranscriptionService
from ..adapters.storage.azure_blob_service import get_azure_blob_service
from ..adapters.storage.session_file_storage import BlobSessionFileStorage
from ..application.ports.repositories.appointment_repo import AppointmentRepository
from ..application.ports.repositories.patient_repo import PatientRepository
from ..application.ports.repositories.session_repo import SessionRepository
from ..application.ports.services.file_storage_service import FileStorageService
from ..application.ports.services.narrative_service import NarrativeService
from ..application.ports.services.plan_generation_service import PlanGenerationService
from ..application.ports.services.transcription_service import TranscriptionService
from ..application.services.appointment_status_bridge import AppointmentStatusBridge
from ..application.services.evolution_aggregator import EvolutionAggregator
from ..application.services.inflight import InFlightRegistry
from ..application.services.session_record_store import SessionRecordStore
from ..application.services.treatment_plan_ledger import TreatmentPlanLedger
from ..core.config import get_settings


@lru_cache()
def get_session_repository() -> SessionRepository:
    return MongoSessionRepository()


@lru_cache()
def get_appointment_repository() -> AppointmentRepository:
    return MongoAppointmentRepository()


@lru_cache()
def get_patient_repository() -> PatientRepository:
    return MongoPatientRepository()


@lru_cache()
def get_narrative_service() -> NarrativeService:
    """Get narrative service instance (Azure OpenAI client created on first call)."""
    return OpenAINarrativeService()


@lru_cache()
def get_plan_generation_service() -> PlanGenerationService:
    return OpenAIPlanGenerationService()


@lru_cache()
def get_transcription_service() -> TranscriptionService:
    return OpenAITranscriptionService()


@lru_cache()
def get_file_storage() -> FileStorageService:
    return BlobSessionFileStorage(get_azure_blob_service(), SessionFileRepository())


@lru_cache()
def get_inflight_registry() -> InFlightRegistry:
    return InFlightRegistry()


@lru_cache()
def get_session_record_store() -> SessionRecordStore:
    appointment_repository = get_appointment_repository()
    return SessionRecordStore(
        session_repository=get_session_repository(),
        appointment_repository=appointment_repository,
        status_bridge=AppointmentStatusBridge(appointment_repository),
        narrative_service=get_narrative_service(),
        transcription_service=get_transcription_service(),
        file_storage=get_file_storage(),
        inflight=get_inflight_registry(),
        settings=get_settings().clinical,
    )


@lru_cache()
def get_treatment_plan_ledger() -> TreatmentPlanLedger:
    return TreatmentPlanLedger(
        plan_repository=MongoTreatmentPlanRepository(),
        version_repository=MongoPlanVersionRepository(),
        session_repository=get_session_repository(),
        patient_repository=get_patient_repository(),
        plan_generation_service=get_plan_generation_service(),
        inflight=get_inflight_registry(),
        settings=get_settings().clinical,
    )


@lru_cache()
def get_evolution_aggregator() -> EvolutionAggregator:
    return EvolutionAggregator(
        session_store=get_session_record_store(),
        plan_ledger=get_treatment_plan_ledger(),
        patient_repository=get_patient_repository(),
        report_repository=MongoEvolutionReportRepository(),
        narrative_service=get_narrative_service(),
        inflight=get_inflight_registry(),
        settings=get_settings().clinical,
    )


# Type aliases for dependency injection
PatientRepositoryDep = Annotated[PatientRepository, Depends(get_patient_repository)]
SessionStoreDep = Annotated[SessionRecordStore, Depends(get_session_record_store)]
PlanLedgerDep = Annotated[TreatmentPlanLedger, Depends(get_treatment_plan_ledger)]
EvolutionAggregatorDep = Annotated[EvolutionAggregator, Depends(get_evolution_aggregator)]
InFlightDep = Annotated[InFlightRegistry, Depends(get_inflight_registry)]
