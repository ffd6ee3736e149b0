"""
Azure OpenAI chat client used by the narrative and plan generation adapters.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from openai import AsyncAzureOpenAI

from .config import AzureOpenAISettings, get_settings
from .exceptions import ConfigurationError


class AzureAIClient:
    """Chat completions against one configured Azure deployment."""

    def __init__(self, settings: Optional[AzureOpenAISettings] = None) -> None:
        settings = settings or get_settings().azure_openai
        if not settings.is_configured:
            raise ConfigurationError(
                "Azure OpenAI is not configured. Set AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_API_KEY.",
                {"service": "azure_openai"},
            )
        if not settings.deployment_name:
            raise ConfigurationError("AZURE_OPENAI_DEPLOYMENT_NAME is not set", {"service": "azure_openai"})

        self._deployment_name = settings.deployment_name
        self._client = AsyncAzureOpenAI(
            api_key=settings.api_key,
            api_version=settings.api_version,
            azure_endpoint=settings.endpoint.rstrip("/"),
        )

    @property
    def deployment_name(self) -> str:
        return self._deployment_name

    async def chat(
        self,
        messages: Sequence[Dict[str, Any]],
        *,
        temperature: float = 0.3,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ):
        """Create one chat completion; ``kwargs`` go to the SDK unchanged (tools, tool_choice)."""
        return await self._client.chat.completions.create(
            model=self._deployment_name,
            messages=list(messages),
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )
