"""
Azure OpenAI implementation of the treatment plan generation port.

The model is forced to answer through the ``create_treatment_plan`` tool so
the plan arrives as JSON arguments.
"""

import json
import logging
from typing import Any, Dict, Optional

from openai import OpenAIError

from clinicrecords.application.dto.narrative_dto import PlanGenerationContext
from clinicrecords.application.ports.services.plan_generation_service import PlanGenerationService
from clinicrecords.core.ai_client import AzureAIClient
from clinicrecords.core.config import NarrativeSettings, get_settings
from clinicrecords.core.exceptions import NarrativeGenerationError

from .llm_gateway import call_llm_with_telemetry
from .prompts import PLAN_SYSTEM_PROMPT, PLAN_TOOL, PLAN_TOOL_NAME, PromptScenario, plan_prompt

logger = logging.getLogger(__name__)


class OpenAIPlanGenerationService(PlanGenerationService):
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

    async def generate_plan(self, context: PlanGenerationContext) -> Dict[str, Any]:
        messages = [
            {"role": "system", "content": PLAN_SYSTEM_PROMPT.format(language=self._settings.language)},
            {"role": "user", "content": plan_prompt(context)},
        ]
        try:
            response = await call_llm_with_telemetry(
                self.client,
                PromptScenario.TREATMENT_PLAN,
                messages,
                temperature=self._settings.temperature,
                max_tokens=self._settings.max_tokens,
                tools=[PLAN_TOOL],
                tool_choice={"type": "function", "function": {"name": PLAN_TOOL_NAME}},
            )
        except OpenAIError as e:
            raise NarrativeGenerationError(str(e), {"kind": "treatment_plan"})

        message = response.choices[0].message if response.choices else None
        tool_calls = getattr(message, "tool_calls", None) or []
        if not tool_calls or not tool_calls[0].function.arguments:
            raise NarrativeGenerationError("Model did not call the plan tool", {"kind": "treatment_plan"})

        try:
            plan = json.loads(tool_calls[0].function.arguments)
        except json.JSONDecodeError as e:
            logger.warning(f"Unparseable plan arguments: {tool_calls[0].function.arguments[:200]}")
            raise NarrativeGenerationError(f"Invalid plan JSON: {e}", {"kind": "treatment_plan"})
        if not isinstance(plan, dict):
            raise NarrativeGenerationError("Plan arguments are not an object", {"kind": "treatment_plan"})
        return plan
