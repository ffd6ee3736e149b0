"""
In-memory stand-ins for the repositories and external services.

Repositories hand out copies, so a test only sees what was actually written.
"""

import copy
from typing import Any, Dict, Iterable, List, Optional, Set

from clinicrecords.application.dto.narrative_dto import (
    NarrativeContext,
    NarrativeResult,
    PlanGenerationContext,
)
from clinicrecords.application.ports.repositories.appointment_repo import AppointmentRepository
from clinicrecords.application.ports.repositories.evolution_report_repo import EvolutionReportRepository
from clinicrecords.application.ports.repositories.patient_repo import PatientRepository
from clinicrecords.application.ports.repositories.plan_version_repo import PlanVersionRepository
from clinicrecords.application.ports.repositories.session_repo import SessionRepository
from clinicrecords.application.ports.repositories.treatment_plan_repo import TreatmentPlanRepository
from clinicrecords.application.ports.services.file_storage_service import FileStorageService
from clinicrecords.application.ports.services.narrative_service import NarrativeService
from clinicrecords.application.ports.services.plan_generation_service import PlanGenerationService
from clinicrecords.application.ports.services.transcription_service import TranscriptionService
from clinicrecords.core.exceptions import DatabaseError
from clinicrecords.core.utils.string_utils import generate_id
from clinicrecords.domain.entities.appointment import Appointment
from clinicrecords.domain.entities.evolution import EvolutionReport
from clinicrecords.domain.entities.patient import Patient
from clinicrecords.domain.entities.plan_version import TreatmentPlanVersion
from clinicrecords.domain.entities.session import Session
from clinicrecords.domain.entities.session_file import SessionFile
from clinicrecords.domain.entities.treatment_plan import TreatmentPlan
from clinicrecords.domain.enums.statuses import NarrativeKind, PlanStatus
from clinicrecords.domain.value_objects.file_blob import FileBlob

PATIENT_ID = "patient-1"


def _apply(entity: Any, changes: Dict[str, Any]) -> None:
    for name, value in changes.items():
        setattr(entity, name, copy.deepcopy(value))


class InMemorySessionRepository(SessionRepository):
    def __init__(self) -> None:
        self.items: Dict[str, Session] = {}

    async def create(self, session: Session) -> Session:
        self.items[session.session_id] = copy.deepcopy(session)
        return copy.deepcopy(session)

    async def get_by_id(self, session_id: str) -> Optional[Session]:
        return copy.deepcopy(self.items.get(session_id))

    async def list_by_patient(self, patient_id: str) -> List[Session]:
        return [copy.deepcopy(s) for s in self.items.values() if s.patient_id == patient_id]

    async def update(self, session_id: str, changes: Dict[str, Any]) -> Optional[Session]:
        session = self.items.get(session_id)
        if session is None:
            return None
        _apply(session, changes)
        return copy.deepcopy(session)

    async def delete(self, session_id: str) -> bool:
        return self.items.pop(session_id, None) is not None

    async def find_linked_appointment_ids(self, appointment_ids: Iterable[str]) -> Set[str]:
        wanted = set(appointment_ids)
        return {s.appointment_id for s in self.items.values() if s.appointment_id in wanted}


class InMemoryAppointmentRepository(AppointmentRepository):
    def __init__(self, appointments: Iterable[Appointment] = ()) -> None:
        self.items: List[Appointment] = [copy.deepcopy(a) for a in appointments]
        self.updates: List[tuple] = []
        self.fail_update = False

    def add(self, appointment: Appointment) -> None:
        self.items.append(copy.deepcopy(appointment))

    async def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        for appointment in self.items:
            if appointment.appointment_id == appointment_id:
                return copy.deepcopy(appointment)
        return None

    async def list_by_patient(self, patient_id: str) -> List[Appointment]:
        return [copy.deepcopy(a) for a in self.items if a.patient_id == patient_id]

    async def update(self, appointment_id: str, changes: Dict[str, Any]) -> Optional[Appointment]:
        if self.fail_update:
            raise DatabaseError("Failed to update appointment", {"appointment_id": appointment_id})
        self.updates.append((appointment_id, dict(changes)))
        for appointment in self.items:
            if appointment.appointment_id == appointment_id:
                _apply(appointment, changes)
                return copy.deepcopy(appointment)
        return None


class InMemoryPatientRepository(PatientRepository):
    def __init__(self, patients: Iterable[Patient] = ()) -> None:
        self.items: Dict[str, Patient] = {p.patient_id: p for p in patients}

    async def find_by_id(self, patient_id: str) -> Optional[Patient]:
        return copy.deepcopy(self.items.get(patient_id))


class InMemoryTreatmentPlanRepository(TreatmentPlanRepository):
    def __init__(self) -> None:
        self.items: Dict[str, TreatmentPlan] = {}
        self.fail_create = False

    async def create(self, plan: TreatmentPlan) -> TreatmentPlan:
        if self.fail_create:
            raise RuntimeError("database unavailable")
        self.items[plan.plan_id] = copy.deepcopy(plan)
        return copy.deepcopy(plan)

    async def get_by_id(self, plan_id: str) -> Optional[TreatmentPlan]:
        return copy.deepcopy(self.items.get(plan_id))

    async def find_active(self, patient_id: str) -> Optional[TreatmentPlan]:
        for plan in self.items.values():
            if plan.patient_id == patient_id and plan.status == PlanStatus.ACTIVE:
                return copy.deepcopy(plan)
        return None

    async def list_by_patient(self, patient_id: str) -> List[TreatmentPlan]:
        return [copy.deepcopy(p) for p in self.items.values() if p.patient_id == patient_id]

    async def update(self, plan_id: str, changes: Dict[str, Any]) -> Optional[TreatmentPlan]:
        plan = self.items.get(plan_id)
        if plan is None:
            return None
        _apply(plan, changes)
        return copy.deepcopy(plan)

    async def delete(self, plan_id: str) -> bool:
        return self.items.pop(plan_id, None) is not None

    def active_count(self, patient_id: str) -> int:
        return sum(
            1 for p in self.items.values() if p.patient_id == patient_id and p.status == PlanStatus.ACTIVE
        )


class InMemoryPlanVersionRepository(PlanVersionRepository):
    def __init__(self) -> None:
        self.items: Dict[str, TreatmentPlanVersion] = {}

    async def create(self, version: TreatmentPlanVersion) -> TreatmentPlanVersion:
        self.items[version.version_id] = copy.deepcopy(version)
        return copy.deepcopy(version)

    async def get_by_id(self, version_id: str) -> Optional[TreatmentPlanVersion]:
        return copy.deepcopy(self.items.get(version_id))

    async def list_by_plan(self, plan_id: str) -> List[TreatmentPlanVersion]:
        return [copy.deepcopy(v) for v in self.items.values() if v.plan_id == plan_id]

    async def latest_version_number(self, plan_id: str) -> int:
        numbers = [v.version_number for v in self.items.values() if v.plan_id == plan_id]
        return max(numbers, default=0)


class InMemoryEvolutionReportRepository(EvolutionReportRepository):
    def __init__(self) -> None:
        self.items: List[EvolutionReport] = []

    async def create(self, report: EvolutionReport) -> EvolutionReport:
        self.items.append(copy.deepcopy(report))
        return copy.deepcopy(report)

    async def list_by_patient(self, patient_id: str) -> List[EvolutionReport]:
        return [copy.deepcopy(r) for r in self.items if r.patient_id == patient_id]


class FakeNarrativeService(NarrativeService):
    """Returns canned output and records every request."""

    def __init__(self, content: str = "Generated text", insights: Optional[Dict[str, Any]] = None) -> None:
        self.content = content
        self.insights = insights if insights is not None else {"keyPoints": ["Sleeps better"]}
        self.calls: List[tuple] = []

    async def generate(self, kind: NarrativeKind, context: NarrativeContext) -> NarrativeResult:
        self.calls.append((NarrativeKind(kind), context))
        if kind == NarrativeKind.INSIGHTS:
            return NarrativeResult(insights=self.insights)
        return NarrativeResult(content=self.content)


class FakePlanGenerationService(PlanGenerationService):
    def __init__(self, plan: Optional[Dict[str, Any]] = None) -> None:
        self.plan = plan if plan is not None else {
            "objectives": ["Reduce anxiety"],
            "short_term_goals": ["Respirar", "Dormir"],
            "long_term_goals": ["Return to work"],
            "approaches": ["CBT"],
            "estimated_sessions": "10",
        }
        self.calls: List[PlanGenerationContext] = []

    async def generate_plan(self, context: PlanGenerationContext) -> Dict[str, Any]:
        self.calls.append(context)
        return dict(self.plan)


class FakeTranscriptionService(TranscriptionService):
    def __init__(self, text: str = "Patient talked about work.") -> None:
        self.text = text
        self.calls: List[FileBlob] = []

    async def transcribe(self, blob: FileBlob) -> str:
        self.calls.append(blob)
        return self.text


class InMemoryFileStorage(FileStorageService):
    def __init__(self) -> None:
        self.files: Dict[str, SessionFile] = {}
        self.deleted: List[str] = []

    async def upload(self, session_id: str, blob: FileBlob, is_recording: bool = False) -> SessionFile:
        file_id = generate_id()
        stored = SessionFile(
            file_id=file_id,
            session_id=session_id,
            file_name=blob.file_name,
            file_type=blob.content_type,
            file_size=blob.size,
            storage_path=f"sessions/{session_id}/{file_id}/{blob.file_name}",
            is_recording=is_recording,
        )
        self.files[file_id] = stored
        return copy.deepcopy(stored)

    async def list_files(self, session_id: str) -> List[SessionFile]:
        files = [f for f in self.files.values() if f.session_id == session_id]
        return sorted(files, key=lambda f: f.created_at, reverse=True)

    async def get_file(self, file_id: str) -> Optional[SessionFile]:
        return copy.deepcopy(self.files.get(file_id))

    async def delete(self, file_id: str, storage_path: str) -> bool:
        self.deleted.append(storage_path)
        return self.files.pop(file_id, None) is not None

    async def get_download_url(self, storage_path: str) -> str:
        return f"https://storage.test/{storage_path}?sig=abc"
