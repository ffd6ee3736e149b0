"""
Narrative generation service interface (summaries, insights, evolution reports).
"""

from abc import ABC, abstractmethod

from clinicrecords.application.dto.narrative_dto import NarrativeContext, NarrativeResult
from clinicrecords.domain.enums.statuses import NarrativeKind


class NarrativeService(ABC):
    """Abstract service producing clinical narrative text."""

    @abstractmethod
    async def generate(self, kind: NarrativeKind, context: NarrativeContext) -> NarrativeResult:
        """
        Generate narrative output for a session or a patient's history.

        Args:
            kind: summary, insights or evolution
            context: patient name, notes, transcription and past session digests

        Returns:
            NarrativeResult with ``content`` (summary, evolution) or ``insights``

        Raises:
            NarrativeGenerationError: provider failure or unusable answer
        """
        pass
