"""Treatment plan ledger.

Owns the per-patient plan lifecycle (at most one active plan, archived history),
the goal ledger, the improvement log and plan version snapshots.

Every mutation loads a fresh copy of the plan, applies the change to that copy
and persists only the touched fields; the updated plan is returned after the
write succeeds.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from ...core.config import ClinicalSettings
from ...core.exceptions import ExternalServiceError, NarrativeGenerationError
from ...core.utils.datetime_utils import get_current_date, get_current_timestamp
from ...core.utils.string_utils import generate_id, is_blank
from ...domain.entities.plan_version import (
    INITIAL_VERSION_SUMMARY,
    TreatmentPlanVersion,
    VersionComparison,
    compare_versions,
)
from ...domain.entities.treatment_plan import Goal, TreatmentPlan
from ...domain.enums.statuses import (
    GoalListKind,
    OperationKind,
    PlanProgressStatus,
    PlanStatus,
)
from ...domain.errors import (
    ActivePlanExistsError,
    PatientNotFoundError,
    PlanVersionNotFoundError,
    TreatmentPlanNotFoundError,
    ValidationError,
)
from ...observability.audit import audit_log_event
from ..dto.narrative_dto import PlanGenerationContext, digest_sessions
from ..dto.plan_dto import PlanDraft
from ..ports.repositories.patient_repo import PatientRepository
from ..ports.repositories.plan_version_repo import PlanVersionRepository
from ..ports.repositories.session_repo import SessionRepository
from ..ports.repositories.treatment_plan_repo import TreatmentPlanRepository
from ..ports.services.plan_generation_service import PlanGenerationService
from .inflight import InFlightRegistry

logger = logging.getLogger(__name__)


class TreatmentPlanLedger:
    def __init__(
        self,
        plan_repository: TreatmentPlanRepository,
        version_repository: PlanVersionRepository,
        session_repository: SessionRepository,
        patient_repository: PatientRepository,
        plan_generation_service: PlanGenerationService,
        inflight: InFlightRegistry,
        settings: Optional[ClinicalSettings] = None,
    ):
        self._plan_repository = plan_repository
        self._version_repository = version_repository
        self._session_repository = session_repository
        self._patient_repository = patient_repository
        self._plan_generation_service = plan_generation_service
        self._inflight = inflight
        self._settings = settings or ClinicalSettings()

    # Queries
    async def get(self, plan_id: str) -> TreatmentPlan:
        plan = await self._plan_repository.get_by_id(plan_id)
        if plan is None:
            raise TreatmentPlanNotFoundError(plan_id)
        return plan

    async def get_active(self, patient_id: str) -> Optional[TreatmentPlan]:
        return await self._plan_repository.find_active(patient_id)

    async def list_archived(self, patient_id: str) -> List[TreatmentPlan]:
        """Archived plans of a patient, most recently archived first."""
        plans = await self._plan_repository.list_by_patient(patient_id)
        archived = [p for p in plans if p.status == PlanStatus.ARCHIVED]
        return sorted(archived, key=lambda p: (p.updated_at, p.created_at), reverse=True)

    # Lifecycle
    async def create_or_replace(
        self, patient_id: str, draft: PlanDraft, replace: bool = False
    ) -> TreatmentPlan:
        """Create the patient's active plan, archiving the current one when ``replace``.

        When the create fails after the archive succeeded, the archived plan is
        reactivated and a single ExternalServiceError names both plans.
        """
        existing = await self._plan_repository.find_active(patient_id)
        if existing is not None and not replace:
            raise ActivePlanExistsError(patient_id, existing.plan_id)

        plan = self._build_plan(patient_id, draft)

        if existing is not None:
            await self._archive(existing)

        try:
            created = await self._plan_repository.create(plan)
        except Exception as exc:
            if existing is None:
                raise
            compensated = await self._reactivate(existing.plan_id)
            raise ExternalServiceError(
                "Treatment plan",
                f"Failed to create replacement plan for patient '{patient_id}'",
                {
                    "archived_plan_id": existing.plan_id,
                    "new_plan_id": plan.plan_id,
                    "compensated": compensated,
                    "cause": str(exc),
                },
            ) from exc

        logger.info(f"Treatment plan {created.plan_id} created for patient {patient_id}")
        await audit_log_event(
            event="treatment_plan_replaced" if existing is not None else "treatment_plan_created",
            patient_id=patient_id,
            plan_id=created.plan_id,
            payload={"archived_plan_id": existing.plan_id} if existing is not None else None,
        )
        await self._snapshot(created, INITIAL_VERSION_SUMMARY)
        return created

    async def archive(self, plan_id: str) -> TreatmentPlan:
        plan = await self.get(plan_id)
        archived = await self._archive(plan)
        await audit_log_event(event="treatment_plan_archived", patient_id=plan.patient_id, plan_id=plan_id)
        return archived

    async def generate_plan(
        self, patient_id: str, context: Optional[str] = None, replace: bool = False
    ) -> TreatmentPlan:
        """Draft a plan with the plan generator and store it via create_or_replace."""
        patient = await self._patient_repository.find_by_id(patient_id)
        if patient is None:
            raise PatientNotFoundError(patient_id)

        if not replace:
            existing = await self._plan_repository.find_active(patient_id)
            if existing is not None:
                raise ActivePlanExistsError(patient_id, existing.plan_id)

        async with self._inflight.track(patient_id, OperationKind.PLAN_GENERATION):
            sessions = await self._session_repository.list_by_patient(patient_id)
            qualifying = [s for s in sessions if s.is_completed and s.has_clinical_content()]
            data = await self._plan_generation_service.generate_plan(
                PlanGenerationContext(
                    patient_name=patient.name,
                    clinician_context=context,
                    sessions=digest_sessions(qualifying, self._settings.evolution_max_sessions),
                )
            )
            draft = PlanDraft.from_dict(data or {})
            if not (draft.objectives or draft.short_term_goals or draft.long_term_goals):
                raise NarrativeGenerationError(
                    "Generated plan has no objectives or goals", {"patient_id": patient_id}
                )
            return await self.create_or_replace(patient_id, draft, replace=replace)

    # Goals
    async def toggle_goal_completion(self, plan_id: str, goal: str) -> TreatmentPlan:
        plan = await self.get(plan_id)
        plan.toggle_goal(goal, get_current_timestamp())
        return await self._persist(plan, "goal_results")

    async def set_goal_result(self, plan_id: str, goal: str, note: Optional[str]) -> TreatmentPlan:
        plan = await self.get(plan_id)
        plan.set_goal_result(goal, note, get_current_timestamp())
        return await self._persist(plan, "goal_results")

    async def add_goal(self, plan_id: str, kind: GoalListKind, text: str) -> TreatmentPlan:
        kind = GoalListKind(kind)
        plan = await self.get(plan_id)
        plan.add_goal(kind, text, get_current_timestamp())
        return await self._persist(plan, f"{kind.value}_goals")

    async def rename_goal(self, plan_id: str, goal_id: str, text: str) -> TreatmentPlan:
        plan = await self.get(plan_id)
        plan.rename_goal(goal_id, text, get_current_timestamp())
        return await self._persist(plan, "short_term_goals", "long_term_goals", "goal_results")

    # Improvements and review
    async def add_improvement(
        self,
        plan_id: str,
        description: str,
        category: str,
        on: Optional[Union[date, datetime]] = None,
    ) -> TreatmentPlan:
        now = get_current_timestamp()
        plan = await self.get(plan_id)
        plan.add_improvement(description, category, on or now, now)
        return await self._persist(plan, "improvements")

    async def update_status(
        self, plan_id: str, current_status: PlanProgressStatus, notes: Optional[str] = None
    ) -> TreatmentPlan:
        plan = await self.get(plan_id)
        plan.update_status(current_status, notes, get_current_timestamp())
        return await self._persist(plan, "current_status", "current_status_notes", "last_review_date")

    async def update_plan(
        self, plan_id: str, changes: Dict[str, Any], change_summary: Optional[str] = None
    ) -> TreatmentPlan:
        """Edit plan fields; a change summary also records a version snapshot."""
        plan = await self.get(plan_id)
        written = plan.apply_changes(changes, get_current_timestamp())
        updated = await self._persist(plan, *written)
        if not is_blank(change_summary):
            await self._snapshot(updated, change_summary.strip())
        return updated

    # Versions
    async def create_version(self, plan_id: str, change_summary: Optional[str] = None) -> TreatmentPlanVersion:
        plan = await self.get(plan_id)
        return await self._create_version(plan, change_summary)

    async def list_versions(self, plan_id: str) -> List[TreatmentPlanVersion]:
        await self.get(plan_id)
        versions = await self._version_repository.list_by_plan(plan_id)
        return sorted(versions, key=lambda v: v.version_number, reverse=True)

    async def compare_versions(
        self, version_id_a: str, version_id_b: str, plan_id: Optional[str] = None
    ) -> VersionComparison:
        """Diff two versions of one plan, older against newer whatever the argument order."""
        first = await self._get_version(version_id_a)
        second = await self._get_version(version_id_b)
        for version in (first, second):
            if plan_id is not None and version.plan_id != plan_id:
                raise PlanVersionNotFoundError(version.version_id)
        if first.plan_id != second.plan_id:
            raise ValidationError(
                "version_id", "Versions belong to different plans", [version_id_a, version_id_b]
            )
        older, newer = sorted((first, second), key=lambda v: v.version_number)
        return compare_versions(older, newer)

    # Internals
    def _build_plan(self, patient_id: str, draft: PlanDraft) -> TreatmentPlan:
        estimated = draft.estimated_sessions
        if estimated is None:
            estimated = self._settings.default_estimated_sessions
        return TreatmentPlan(
            plan_id=generate_id(),
            patient_id=patient_id,
            start_date=draft.start_date or get_current_date(),
            estimated_sessions=estimated,
            objectives=draft.objectives,
            discharge_objectives=draft.discharge_objectives,
            approaches=draft.approaches,
            short_term_goals=[Goal.new(text) for text in draft.short_term_goals if not is_blank(text)],
            long_term_goals=[Goal.new(text) for text in draft.long_term_goals if not is_blank(text)],
            notes=draft.notes,
            next_review_date=draft.next_review_date,
        )

    async def _persist(self, plan: TreatmentPlan, *field_names: str) -> TreatmentPlan:
        changes = {name: getattr(plan, name) for name in field_names}
        changes["updated_at"] = plan.updated_at
        updated = await self._plan_repository.update(plan.plan_id, changes)
        if updated is None:
            raise TreatmentPlanNotFoundError(plan.plan_id)
        return updated

    async def _archive(self, plan: TreatmentPlan) -> TreatmentPlan:
        plan.archive(get_current_timestamp())
        archived = await self._persist(plan, "status")
        logger.info(f"Treatment plan {plan.plan_id} archived")
        return archived

    async def _reactivate(self, plan_id: str) -> bool:
        try:
            plan = await self.get(plan_id)
            plan.reactivate(get_current_timestamp())
            await self._persist(plan, "status")
        except Exception as exc:
            logger.error(f"Could not reactivate treatment plan {plan_id}: {exc}", exc_info=True)
            return False
        logger.warning(f"Treatment plan {plan_id} reactivated after failed replacement")
        return True

    async def _get_version(self, version_id: str) -> TreatmentPlanVersion:
        version = await self._version_repository.get_by_id(version_id)
        if version is None:
            raise PlanVersionNotFoundError(version_id)
        return version

    async def _create_version(self, plan: TreatmentPlan, change_summary: Optional[str]) -> TreatmentPlanVersion:
        number = await self._version_repository.latest_version_number(plan.plan_id) + 1
        if is_blank(change_summary):
            change_summary = f"Versão {number}"
        version = TreatmentPlanVersion(
            version_id=generate_id(),
            plan_id=plan.plan_id,
            version_number=number,
            snapshot=plan,
            change_summary=change_summary,
        )
        created = await self._version_repository.create(version)
        logger.info(f"Treatment plan {plan.plan_id} version {created.version_number} stored")
        return created

    async def _snapshot(self, plan: TreatmentPlan, change_summary: str) -> None:
        try:
            await self._create_version(plan, change_summary)
        except Exception as exc:
            logger.warning(f"Snapshot of treatment plan {plan.plan_id} failed: {exc}")
