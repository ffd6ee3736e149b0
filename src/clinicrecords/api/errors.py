from typing import Union

from ..core.exceptions import ClinicRecordsException, ConfigurationError, ExternalServiceError
from ..domain.errors import (
    DomainError,
    InsufficientDataError,
    InvalidStateError,
    NotFoundError,
    ValidationError as DomainValidationError,
)


class APIError(Exception):
    def __init__(self, code: str, message: str, http_status: int = 400, details: dict = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details


class ValidationError(APIError):
    def __init__(self, message: str, details: dict = None):
        super().__init__("INVALID_INPUT", message, 422, details)


class PayloadTooLargeError(APIError):
    def __init__(self, message: str, details: dict = None):
        super().__init__("PAYLOAD_TOO_LARGE", message, 413, details)


def http_status_for(exc: Union[DomainError, ClinicRecordsException]) -> int:
    """HTTP status for a typed domain or infrastructure error."""
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, InvalidStateError):
        return 409
    if isinstance(exc, (InsufficientDataError, DomainValidationError)):
        return 422
    if isinstance(exc, ConfigurationError):
        return 503
    if isinstance(exc, ExternalServiceError):
        return 502
    if isinstance(exc, DomainError):
        return 400
    return 500


def to_api_error(exc: Union[DomainError, ClinicRecordsException]) -> APIError:
    return APIError(
        code=exc.error_code or "DOMAIN_ERROR",
        message=exc.message,
        http_status=http_status_for(exc),
        details=exc.details,
    )
