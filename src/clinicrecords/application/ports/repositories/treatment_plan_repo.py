"""
Treatment plan repository interface.
"""

from typing import Any, Dict, List, Optional

from clinicrecords.domain.entities.treatment_plan import TreatmentPlan


class TreatmentPlanRepository:
    """Repository interface for managing treatment plans."""

    async def create(self, plan: TreatmentPlan) -> TreatmentPlan:
        """Persist a new plan.

        Raises ActivePlanExistsError when the plan is active and the patient
        already has an active plan.
        """
        raise NotImplementedError

    async def get_by_id(self, plan_id: str) -> Optional[TreatmentPlan]:
        raise NotImplementedError

    async def find_active(self, patient_id: str) -> Optional[TreatmentPlan]:
        """The patient's active plan, if any."""
        raise NotImplementedError

    async def list_by_patient(self, patient_id: str) -> List[TreatmentPlan]:
        raise NotImplementedError

    async def update(self, plan_id: str, changes: Dict[str, Any]) -> Optional[TreatmentPlan]:
        """Write the given fields only; returns the stored plan or None when unknown."""
        raise NotImplementedError

    async def delete(self, plan_id: str) -> bool:
        raise NotImplementedError
