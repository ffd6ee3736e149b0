"""
OpenAI Whisper API-based transcription service.
"""

import logging
import time
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from clinicrecords.application.ports.services.transcription_service import TranscriptionService
from clinicrecords.core.config import OpenAISettings, get_settings
from clinicrecords.core.exceptions import ConfigurationError, TranscriptionError
from clinicrecords.domain.value_objects.file_blob import AudioBlob
from clinicrecords.observability.tracing import add_span_attribute, set_span_status, trace_operation

logger = logging.getLogger(__name__)


class OpenAITranscriptionService(TranscriptionService):
    def __init__(self, settings: Optional[OpenAISettings] = None) -> None:
        self._settings = settings or get_settings().openai
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._settings.api_key:
                raise ConfigurationError("OPENAI_API_KEY is not set")
            self._client = AsyncOpenAI(api_key=self._settings.api_key)
        return self._client

    async def transcribe(self, blob: AudioBlob) -> str:
        start_time = time.perf_counter()
        with trace_operation(
            "transcription",
            {"model": self._settings.transcription_model, "content_type": blob.content_type, "bytes": blob.size},
        ) as span:
            try:
                kwargs = {}
                if self._settings.transcription_language:
                    kwargs["language"] = self._settings.transcription_language
                response = await self.client.audio.transcriptions.create(
                    model=self._settings.transcription_model,
                    file=(blob.file_name, blob.data, blob.content_type),
                    **kwargs,
                )
            except OpenAIError as e:
                set_span_status(span, success=False, error_message=str(e))
                logger.error(f"Transcription failed for {blob.file_name}: {e}")
                raise TranscriptionError(str(e), {"file_name": blob.file_name})

            text = (response.text or "").strip()
            latency_ms = (time.perf_counter() - start_time) * 1000.0
            add_span_attribute(span, "transcription.latency_ms", latency_ms)
            add_span_attribute(span, "transcription.chars", len(text))
            set_span_status(span, success=True)

        logger.info(f"Transcribed {blob.file_name}: {len(text)} chars in {latency_ms:.0f} ms")
        return text
