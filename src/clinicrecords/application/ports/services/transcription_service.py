"""
Transcription service interface for audio-to-text conversion.
"""

from abc import ABC, abstractmethod

from clinicrecords.domain.value_objects.file_blob import AudioBlob


class TranscriptionService(ABC):
    """Abstract service for audio transcription."""

    @abstractmethod
    async def transcribe(self, blob: AudioBlob) -> str:
        """
        Transcribe a finished recording to text.

        Raises:
            TranscriptionError: provider failure or empty transcript
        """
        pass
