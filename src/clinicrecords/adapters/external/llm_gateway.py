"""
Single entry point for chat completions with tracing.

Every narrative and plan generation call goes through ``call_llm_with_telemetry``
so latency, token usage and prompt version land on one span.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from clinicrecords.adapters.external.prompts import PROMPT_VERSIONS, PromptScenario
from clinicrecords.core.ai_client import AzureAIClient
from clinicrecords.observability.tracing import (
    add_span_attribute,
    set_span_status,
    trace_operation,
)

logger = logging.getLogger(__name__)


async def call_llm_with_telemetry(
    ai_client: AzureAIClient,
    scenario: PromptScenario,
    messages: List[Dict[str, str]],
    temperature: float = 0.3,
    max_tokens: Optional[int] = None,
    **kwargs: Any,
) -> Any:
    """
    Run one chat completion inside an ``llm_call`` span.

    Args:
        ai_client: AzureAIClient instance
        scenario: PromptScenario for this call
        messages: chat messages
        temperature: Sampling temperature
        max_tokens: Optional max tokens for response
        **kwargs: Passed to the chat completion (tools, response_format...)

    Returns:
        The raw chat completion response
    """
    prompt_version = PROMPT_VERSIONS.get(scenario, "UNKNOWN")
    start_time = time.perf_counter()

    with trace_operation(
        "llm_call",
        {
            "llm.scenario": scenario.value,
            "llm.prompt_version": prompt_version,
            "llm.model": ai_client.deployment_name,
        },
    ) as span:
        try:
            response = await ai_client.chat(
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start_time) * 1000.0
            add_span_attribute(span, "llm.latency_ms", latency_ms)
            add_span_attribute(span, "llm.error", str(e)[:200])
            set_span_status(span, success=False, error_message=str(e))
            logger.error(
                f"LLM call failed: scenario={scenario.value} "
                f"version={prompt_version} error={str(e)}"
            )
            raise

        latency_ms = (time.perf_counter() - start_time) * 1000.0
        add_span_attribute(span, "llm.latency_ms", latency_ms)
        usage = getattr(response, "usage", None)
        if usage:
            add_span_attribute(span, "llm.tokens", getattr(usage, "total_tokens", 0))
        set_span_status(span, success=True)

        logger.info(
            f"LLM call completed: scenario={scenario.value} "
            f"version={prompt_version} latency_ms={latency_ms:.2f}"
        )
        return response
