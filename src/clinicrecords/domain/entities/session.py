"""Clinical session record.

A session is created by explicit registration or imported from an
appointment, edited by the clinician and enriched with AI output
(transcription, summary, insights).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ...core.utils.datetime_utils import ensure_utc, get_current_timestamp
from ...core.utils.string_utils import is_blank
from ..enums.statuses import SessionStatus
from ..errors import ValidationError

# Fields a clinician (or an enrichment step) may change after creation.
EDITABLE_FIELDS = frozenset(
    {
        "appointment_id",
        "session_date",
        "duration_minutes",
        "status",
        "detailed_notes",
        "summary",
        "clinical_observations",
        "transcription",
        "ai_generated_summary",
        "ai_insights",
        "cancellation_reason",
    }
)

INSIGHT_KEYS = (
    "keyPoints",
    "emotionalThemes",
    "suggestedActions",
    "riskFactors",
    "progressIndicators",
)


def _coerce_status(value: Any) -> SessionStatus:
    try:
        return SessionStatus(value)
    except ValueError:
        raise ValidationError("status", "Unknown session status", value)


def _validate_duration(value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError("duration_minutes", "Duration must be a positive number of minutes", value)
    return value


@dataclass
class Session:
    """Clinical session entity."""

    session_id: str
    patient_id: str
    session_date: datetime
    appointment_id: Optional[str] = None
    duration_minutes: Optional[int] = None
    status: SessionStatus = SessionStatus.SCHEDULED
    detailed_notes: Optional[str] = None
    summary: Optional[str] = None
    clinical_observations: Optional[str] = None
    transcription: Optional[str] = None
    ai_generated_summary: Optional[str] = None
    ai_insights: Optional[Dict[str, List[str]]] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime = field(default_factory=get_current_timestamp)
    updated_at: datetime = field(default_factory=get_current_timestamp)

    def __post_init__(self) -> None:
        if not self.patient_id:
            raise ValidationError("patient_id", "Patient is required", self.patient_id)
        self.status = _coerce_status(self.status)
        self.duration_minutes = _validate_duration(self.duration_minutes)
        self.session_date = ensure_utc(self.session_date)

    @staticmethod
    def validate_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and normalize a partial update.

        Returns a new dict; unknown fields raise ValidationError.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            field_name = sorted(unknown)[0]
            raise ValidationError(field_name, "Field cannot be updated", changes[field_name])

        normalized = dict(changes)
        if "status" in normalized:
            normalized["status"] = _coerce_status(normalized["status"])
        if "duration_minutes" in normalized:
            normalized["duration_minutes"] = _validate_duration(normalized["duration_minutes"])
        if "session_date" in normalized:
            if normalized["session_date"] is None:
                raise ValidationError("session_date", "Session date is required")
            normalized["session_date"] = ensure_utc(normalized["session_date"])
        return normalized

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    def has_clinical_content(self) -> bool:
        """True when notes, summary or transcription carry any text."""
        return not (
            is_blank(self.detailed_notes)
            and is_blank(self.summary)
            and is_blank(self.transcription)
        )

    def best_summary(self) -> Optional[str]:
        """Clinician summary, falling back to the AI-generated one."""
        if not is_blank(self.summary):
            return self.summary
        return self.ai_generated_summary

    def appended_transcription(self, text: str, separator: str) -> str:
        """Existing transcription followed by ``text``."""
        if is_blank(self.transcription):
            return text
        return f"{self.transcription}{separator}{text}"
