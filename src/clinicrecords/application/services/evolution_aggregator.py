"""Evolution aggregator: progress series, plan progress and narrative evolution reports."""

import logging
from collections import Counter
from typing import List, Optional

from ...core.config import ClinicalSettings
from ...core.exceptions import NarrativeGenerationError
from ...core.utils.datetime_utils import month_key
from ...core.utils.string_utils import generate_id, is_blank
from ...domain.entities.evolution import EvolutionPoint, EvolutionReport, PlanProgress
from ...domain.entities.treatment_plan import TreatmentPlan
from ...domain.enums.statuses import NarrativeKind, OperationKind
from ...domain.errors import InsufficientDataError, PatientNotFoundError
from ...observability.audit import audit_log_event
from ..dto.narrative_dto import NarrativeContext, digest_sessions
from ..ports.repositories.evolution_report_repo import EvolutionReportRepository
from ..ports.repositories.patient_repo import PatientRepository
from ..ports.services.narrative_service import NarrativeService
from .inflight import InFlightRegistry
from .session_record_store import SessionRecordStore
from .treatment_plan_ledger import TreatmentPlanLedger

logger = logging.getLogger(__name__)


def build_evolution_series(plan: TreatmentPlan) -> List[EvolutionPoint]:
    """Monthly running totals of improvements and completed goals.

    The month axis is the union of the plan's start month, the months with an
    improvement and the months in which a goal was completed, ascending.
    """
    improvements = Counter(month_key(i.date) for i in plan.improvements)
    completions = Counter(
        month_key(r.completed_at) for r in plan.goal_results if r.completed and r.completed_at
    )
    months = sorted({month_key(plan.start_date), *improvements, *completions})

    points: List[EvolutionPoint] = []
    improvements_total = 0
    goals_total = 0
    for month in months:
        improvements_total += improvements.get(month, 0)
        goals_total += completions.get(month, 0)
        points.append(EvolutionPoint(month, improvements_total, goals_total))
    return points


class EvolutionAggregator:
    def __init__(
        self,
        session_store: SessionRecordStore,
        plan_ledger: TreatmentPlanLedger,
        patient_repository: PatientRepository,
        report_repository: EvolutionReportRepository,
        narrative_service: NarrativeService,
        inflight: InFlightRegistry,
        settings: Optional[ClinicalSettings] = None,
    ):
        self._session_store = session_store
        self._plan_ledger = plan_ledger
        self._patient_repository = patient_repository
        self._report_repository = report_repository
        self._narrative_service = narrative_service
        self._inflight = inflight
        self._settings = settings or ClinicalSettings()

    async def series(self, plan_id: str) -> List[EvolutionPoint]:
        plan = await self._plan_ledger.get(plan_id)
        return build_evolution_series(plan)

    async def plan_progress(self, plan_id: str) -> PlanProgress:
        plan = await self._plan_ledger.get(plan_id)
        sessions = await self._session_store.list(plan.patient_id)
        sessions_completed = sum(1 for s in sessions if s.is_completed)
        return PlanProgress(
            completed_goals=plan.completed_goal_count(),
            total_goals=len(plan.all_goals()),
            goals_progress=plan.goals_progress(),
            sessions_completed=sessions_completed,
            estimated_sessions=plan.estimated_sessions,
            sessions_progress=plan.sessions_progress(sessions_completed),
        )

    async def generate_evolution_report(self, patient_id: str) -> EvolutionReport:
        """Ask the narrative generator for an evolution report over recent sessions.

        Needs at least ``evolution_min_sessions`` completed sessions with notes,
        summary or transcription; the generator is not called otherwise.
        """
        sessions = await self._session_store.list(patient_id)
        qualifying = [s for s in sessions if s.is_completed and s.has_clinical_content()]
        required = self._settings.evolution_min_sessions
        if len(qualifying) < required:
            raise InsufficientDataError(
                f"At least {required} completed sessions with clinical notes are required",
                {"patient_id": patient_id, "qualifying_sessions": len(qualifying), "required": required},
            )

        patient = await self._patient_repository.find_by_id(patient_id)
        if patient is None:
            raise PatientNotFoundError(patient_id)

        digests = digest_sessions(qualifying, self._settings.evolution_max_sessions)
        async with self._inflight.track(patient_id, OperationKind.EVOLUTION):
            result = await self._narrative_service.generate(
                NarrativeKind.EVOLUTION,
                NarrativeContext(patient_name=patient.name, previous_sessions=digests),
            )
            if is_blank(result.content):
                raise NarrativeGenerationError("Empty evolution report returned", {"patient_id": patient_id})

            report = await self._report_repository.create(
                EvolutionReport(
                    report_id=generate_id(),
                    patient_id=patient_id,
                    content=result.content.strip(),
                    session_ids=[d.session_id for d in digests],
                )
            )

        logger.info(f"Evolution report {report.report_id} generated from {len(digests)} sessions")
        await audit_log_event(
            event="evolution_report_generated",
            patient_id=patient_id,
            payload={"report_id": report.report_id, "sessions": len(digests)},
        )
        return report

    async def list_reports(self, patient_id: str) -> List[EvolutionReport]:
        reports = await self._report_repository.list_by_patient(patient_id)
        return sorted(reports, key=lambda r: r.generated_at, reverse=True)
