"""
Exception handling for the infrastructure layer.

Errors raised by adapters (database, AI providers, blob storage) are wrapped
in these types so the application core never sees driver exceptions.
"""

from typing import Any, Dict, Optional


class ClinicRecordsException(Exception):
    """Base exception class for infrastructure errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(ClinicRecordsException):
    """Raised when there's a configuration error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "CONFIG_ERROR", details)


class ExternalServiceError(ClinicRecordsException):
    """Raised when there's an external service error."""

    def __init__(
        self, service: str, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.service = service
        full_message = f"{service} service error: {message}"
        super().__init__(full_message, "EXTERNAL_SERVICE_ERROR", details)


class DatabaseError(ExternalServiceError):
    """Raised when there's a database operation error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("Database", message, details)
        self.error_code = "DATABASE_ERROR"


class TranscriptionError(ExternalServiceError):
    """Raised when audio transcription fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("Transcription", message, details)
        self.error_code = "TRANSCRIPTION_ERROR"


class NarrativeGenerationError(ExternalServiceError):
    """Raised when summary, insights, evolution or plan generation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("Narrative generation", message, details)
        self.error_code = "NARRATIVE_GENERATION_ERROR"


class StorageError(ExternalServiceError):
    """Raised when a blob storage operation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("Storage", message, details)
        self.error_code = "STORAGE_ERROR"
