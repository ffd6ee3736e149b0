"""
Azure OpenAI implementation of the narrative generation port.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

from openai import OpenAIError

from clinicrecords.application.dto.narrative_dto import NarrativeContext, NarrativeResult
from clinicrecords.application.ports.services.narrative_service import NarrativeService
from clinicrecords.core.ai_client import AzureAIClient
from clinicrecords.core.config import NarrativeSettings, get_settings
from clinicrecords.core.exceptions import NarrativeGenerationError
from clinicrecords.domain.entities.session import INSIGHT_KEYS
from clinicrecords.domain.enums.statuses import NarrativeKind

from .llm_gateway import call_llm_with_telemetry
from .prompts import (
    EVOLUTION_SYSTEM_PROMPT,
    INSIGHTS_SYSTEM_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
    PromptScenario,
    evolution_prompt,
    insights_prompt,
    summary_prompt,
)

logger = logging.getLogger(__name__)

JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

_SCENARIOS = {
    NarrativeKind.SUMMARY: (PromptScenario.SESSION_SUMMARY, SUMMARY_SYSTEM_PROMPT, summary_prompt),
    NarrativeKind.INSIGHTS: (PromptScenario.SESSION_INSIGHTS, INSIGHTS_SYSTEM_PROMPT, insights_prompt),
    NarrativeKind.EVOLUTION: (PromptScenario.EVOLUTION_REPORT, EVOLUTION_SYSTEM_PROMPT, evolution_prompt),
}


def parse_insights(content: str) -> Optional[Dict[str, Any]]:
    """First JSON object found in a model reply, or None."""
    match = JSON_OBJECT.search(content or "")
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


class OpenAINarrativeService(NarrativeService):
    """Summaries, insights and evolution reports via Azure OpenAI chat completions."""

    def __init__(
        self,
        ai_client: Optional[AzureAIClient] = None,
        settings: Optional[NarrativeSettings] = None,
    ) -> None:
        self._client = ai_client
        self._settings = settings or get_settings().narrative

    @property
    def client(self) -> AzureAIClient:
        """Created on first use so a missing Azure configuration only fails AI calls."""
        if self._client is None:
            self._client = AzureAIClient()
        return self._client

    async def generate(self, kind: NarrativeKind, context: NarrativeContext) -> NarrativeResult:
        kind = NarrativeKind(kind)
        scenario, system_prompt, build_prompt = _SCENARIOS[kind]
        messages = [
            {"role": "system", "content": system_prompt.format(language=self._settings.language)},
            {"role": "user", "content": build_prompt(context)},
        ]

        try:
            response = await call_llm_with_telemetry(
                self.client,
                scenario,
                messages,
                temperature=self._settings.temperature,
                max_tokens=self._settings.max_tokens,
            )
        except OpenAIError as e:
            raise NarrativeGenerationError(str(e), {"kind": kind.value})

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise NarrativeGenerationError("Model returned no content", {"kind": kind.value})

        if kind == NarrativeKind.INSIGHTS:
            insights = parse_insights(content)
            if insights is None:
                logger.warning(f"Insights reply without a JSON object: {content[:200]}")
                raise NarrativeGenerationError("Model reply contained no insights JSON", {"kind": kind.value})
            if not any(key in insights for key in INSIGHT_KEYS):
                raise NarrativeGenerationError(
                    "Insights JSON has none of the expected keys",
                    {"kind": kind.value, "keys": sorted(insights)},
                )
            return NarrativeResult(insights=insights)

        return NarrativeResult(content=content.strip())
