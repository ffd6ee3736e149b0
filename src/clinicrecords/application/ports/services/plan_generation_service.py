"""
Treatment plan generation service interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from clinicrecords.application.dto.narrative_dto import PlanGenerationContext


class PlanGenerationService(ABC):
    @abstractmethod
    async def generate_plan(self, context: PlanGenerationContext) -> Dict[str, Any]:
        """
        Draft a treatment plan for a patient.

        Returns:
            Mapping of plan fields (objectives, approaches, goals, estimated sessions...)

        Raises:
            NarrativeGenerationError: provider failure or unusable answer
        """
        pass
