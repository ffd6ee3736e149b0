"""
MongoDB implementations of the treatment plan, plan version and evolution report ports.
"""

import logging
from typing import Any, Dict, List, Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

from clinicrecords.application.ports.repositories.evolution_report_repo import EvolutionReportRepository
from clinicrecords.application.ports.repositories.plan_version_repo import PlanVersionRepository
from clinicrecords.application.ports.repositories.treatment_plan_repo import TreatmentPlanRepository
from clinicrecords.core.exceptions import DatabaseError
from clinicrecords.domain.entities.evolution import EvolutionReport
from clinicrecords.domain.entities.plan_version import TreatmentPlanVersion
from clinicrecords.domain.entities.treatment_plan import TreatmentPlan
from clinicrecords.domain.enums.statuses import PlanStatus
from clinicrecords.domain.errors import ActivePlanExistsError

from ..mappers import (
    encode_changes,
    plan_from_document,
    plan_to_document,
    report_from_document,
    report_to_document,
    version_from_document,
    version_to_document,
)
from ..models.treatment_plan_m import (
    EvolutionReportMongo,
    PlanVersionMongo,
    TreatmentPlanMongo,
)

logger = logging.getLogger(__name__)


class MongoTreatmentPlanRepository(TreatmentPlanRepository):
    """Plans collection with a partial unique index enforcing one active plan per patient."""

    async def create(self, plan: TreatmentPlan) -> TreatmentPlan:
        try:
            document = plan_to_document(plan)
            await document.insert()
            return plan_from_document(document)
        except DuplicateKeyError:
            raise await self._active_plan_conflict(plan.patient_id)
        except PyMongoError as e:
            logger.error(f"Failed to create treatment plan {plan.plan_id}: {e}")
            raise DatabaseError(f"Failed to create treatment plan: {e}", {"plan_id": plan.plan_id})

    async def get_by_id(self, plan_id: str) -> Optional[TreatmentPlan]:
        try:
            document = await TreatmentPlanMongo.find_one(TreatmentPlanMongo.plan_id == plan_id)
        except PyMongoError as e:
            raise DatabaseError(f"Failed to read treatment plan: {e}", {"plan_id": plan_id})
        return plan_from_document(document) if document else None

    async def find_active(self, patient_id: str) -> Optional[TreatmentPlan]:
        try:
            document = await TreatmentPlanMongo.find_one(
                TreatmentPlanMongo.patient_id == patient_id,
                TreatmentPlanMongo.status == PlanStatus.ACTIVE.value,
            )
        except PyMongoError as e:
            raise DatabaseError(f"Failed to read active plan: {e}", {"patient_id": patient_id})
        return plan_from_document(document) if document else None

    async def list_by_patient(self, patient_id: str) -> List[TreatmentPlan]:
        try:
            documents = await TreatmentPlanMongo.find(TreatmentPlanMongo.patient_id == patient_id).to_list()
        except PyMongoError as e:
            raise DatabaseError(f"Failed to list treatment plans: {e}", {"patient_id": patient_id})
        return [plan_from_document(d) for d in documents]

    async def update(self, plan_id: str, changes: Dict[str, Any]) -> Optional[TreatmentPlan]:
        try:
            result = await TreatmentPlanMongo.find_one(TreatmentPlanMongo.plan_id == plan_id).update(
                {"$set": encode_changes(changes)}
            )
            if result is None or result.matched_count == 0:
                return None
            document = await TreatmentPlanMongo.find_one(TreatmentPlanMongo.plan_id == plan_id)
        except DuplicateKeyError:
            current = await self.get_by_id(plan_id)
            raise await self._active_plan_conflict(current.patient_id if current else "")
        except PyMongoError as e:
            logger.error(f"Failed to update treatment plan {plan_id}: {e}")
            raise DatabaseError(f"Failed to update treatment plan: {e}", {"plan_id": plan_id})
        return plan_from_document(document) if document else None

    async def delete(self, plan_id: str) -> bool:
        try:
            result = await TreatmentPlanMongo.find_one(TreatmentPlanMongo.plan_id == plan_id).delete()
        except PyMongoError as e:
            raise DatabaseError(f"Failed to delete treatment plan: {e}", {"plan_id": plan_id})
        return bool(result and result.deleted_count)

    async def _active_plan_conflict(self, patient_id: str) -> ActivePlanExistsError:
        active = await self.find_active(patient_id)
        return ActivePlanExistsError(patient_id, active.plan_id if active else "unknown")


class MongoPlanVersionRepository(PlanVersionRepository):
    async def create(self, version: TreatmentPlanVersion) -> TreatmentPlanVersion:
        try:
            document = version_to_document(version)
            await document.insert()
        except PyMongoError as e:
            raise DatabaseError(f"Failed to store plan version: {e}", {"plan_id": version.plan_id})
        return version_from_document(document)

    async def get_by_id(self, version_id: str) -> Optional[TreatmentPlanVersion]:
        try:
            document = await PlanVersionMongo.find_one(PlanVersionMongo.version_id == version_id)
        except PyMongoError as e:
            raise DatabaseError(f"Failed to read plan version: {e}", {"version_id": version_id})
        return version_from_document(document) if document else None

    async def list_by_plan(self, plan_id: str) -> List[TreatmentPlanVersion]:
        try:
            documents = (
                await PlanVersionMongo.find(PlanVersionMongo.plan_id == plan_id)
                .sort("-version_number")
                .to_list()
            )
        except PyMongoError as e:
            raise DatabaseError(f"Failed to list plan versions: {e}", {"plan_id": plan_id})
        return [version_from_document(d) for d in documents]

    async def latest_version_number(self, plan_id: str) -> int:
        try:
            latest = (
                await PlanVersionMongo.find(PlanVersionMongo.plan_id == plan_id)
                .sort("-version_number")
                .first_or_none()
            )
        except PyMongoError as e:
            raise DatabaseError(f"Failed to read plan versions: {e}", {"plan_id": plan_id})
        return latest.version_number if latest else 0


class MongoEvolutionReportRepository(EvolutionReportRepository):
    async def create(self, report: EvolutionReport) -> EvolutionReport:
        try:
            document = report_to_document(report)
            await document.insert()
        except PyMongoError as e:
            raise DatabaseError(f"Failed to store evolution report: {e}", {"patient_id": report.patient_id})
        return report_from_document(document)

    async def list_by_patient(self, patient_id: str) -> List[EvolutionReport]:
        try:
            documents = (
                await EvolutionReportMongo.find(EvolutionReportMongo.patient_id == patient_id)
                .sort("-generated_at")
                .to_list()
            )
        except PyMongoError as e:
            raise DatabaseError(f"Failed to list evolution reports: {e}", {"patient_id": patient_id})
        return [report_from_document(d) for d in documents]
