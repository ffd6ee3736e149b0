"""
Domain-specific error types for business rule violations.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error."""

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


class NotFoundError(DomainError):
    """Unknown entity id."""

    def __init__(self, entity: str, entity_id: str) -> None:
        message = f"{entity} with ID '{entity_id}' not found"
        super().__init__(
            message,
            f"{entity.upper().replace(' ', '_')}_NOT_FOUND",
            {"entity": entity, "id": entity_id},
        )


class SessionNotFoundError(NotFoundError):
    def __init__(self, session_id: str) -> None:
        super().__init__("Session", session_id)


class AppointmentNotFoundError(NotFoundError):
    def __init__(self, appointment_id: str) -> None:
        super().__init__("Appointment", appointment_id)


class TreatmentPlanNotFoundError(NotFoundError):
    def __init__(self, plan_id: str) -> None:
        super().__init__("Treatment plan", plan_id)


class PatientNotFoundError(NotFoundError):
    def __init__(self, patient_id: str) -> None:
        super().__init__("Patient", patient_id)


class GoalNotFoundError(NotFoundError):
    """Goal reference matches neither a goal id nor a goal text of the plan."""

    def __init__(self, plan_id: str, goal: str) -> None:
        super().__init__("Goal", goal)
        self.details["plan_id"] = plan_id


class SessionFileNotFoundError(NotFoundError):
    def __init__(self, file_id: str) -> None:
        super().__init__("Session file", file_id)


class PlanVersionNotFoundError(NotFoundError):
    def __init__(self, version_id: str) -> None:
        super().__init__("Plan version", version_id)


class InvalidStateError(DomainError):
    """Operation not allowed in the entity's current state."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "INVALID_STATE", details)


class ActivePlanExistsError(InvalidStateError):
    """Patient already has an active treatment plan."""

    def __init__(self, patient_id: str, plan_id: str) -> None:
        super().__init__(
            f"Patient '{patient_id}' already has an active treatment plan ({plan_id})",
            {"patient_id": patient_id, "active_plan_id": plan_id},
        )
        self.error_code = "ACTIVE_PLAN_EXISTS"


class OperationInProgressError(InvalidStateError):
    """Same long-running operation already running for the same entity."""

    def __init__(self, entity_id: str, operation: str) -> None:
        super().__init__(
            f"Operation '{operation}' already in progress for '{entity_id}'",
            {"entity_id": entity_id, "operation": operation},
        )
        self.error_code = "OPERATION_IN_PROGRESS"


class InsufficientDataError(DomainError):
    """Not enough clinical data to run the requested operation."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "INSUFFICIENT_DATA", details)


class ValidationError(DomainError):
    """Invalid input value."""

    def __init__(self, field: str, message: str, value: Any = None) -> None:
        super().__init__(
            f"Invalid value for '{field}': {message}",
            "VALIDATION_ERROR",
            {"field": field, "value": value},
        )
