"""
Evolution report repository interface.
"""

from typing import List

from clinicrecords.domain.entities.evolution import EvolutionReport


class EvolutionReportRepository:
    async def create(self, report: EvolutionReport) -> EvolutionReport:
        raise NotImplementedError

    async def list_by_patient(self, patient_id: str) -> List[EvolutionReport]:
        raise NotImplementedError
