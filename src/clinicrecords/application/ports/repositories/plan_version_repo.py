"""
Treatment plan version repository interface.
"""

from typing import List, Optional

from clinicrecords.domain.entities.plan_version import TreatmentPlanVersion


class PlanVersionRepository:
    """Append-only store of plan snapshots."""

    async def create(self, version: TreatmentPlanVersion) -> TreatmentPlanVersion:
        raise NotImplementedError

    async def get_by_id(self, version_id: str) -> Optional[TreatmentPlanVersion]:
        raise NotImplementedError

    async def list_by_plan(self, plan_id: str) -> List[TreatmentPlanVersion]:
        raise NotImplementedError

    async def latest_version_number(self, plan_id: str) -> int:
        """Highest version number stored for the plan, 0 when none."""
        raise NotImplementedError
