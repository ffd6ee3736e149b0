"""Request/response DTOs exchanged with the narrative and plan generators."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ...domain.entities.session import Session


@dataclass
class SessionDigest:
    """What a generator gets to see of one past session."""

    session_id: str
    session_date: datetime
    summary: Optional[str] = None
    notes: Optional[str] = None
    insights: Optional[Dict[str, Any]] = None


@dataclass
class NarrativeContext:
    patient_name: str
    detailed_notes: Optional[str] = None
    transcription: Optional[str] = None
    previous_sessions: List[SessionDigest] = field(default_factory=list)


@dataclass
class NarrativeResult:
    """Generator output; ``content`` for text kinds, ``insights`` for structured insights."""

    content: Optional[str] = None
    insights: Optional[Dict[str, Any]] = None


@dataclass
class PlanGenerationContext:
    patient_name: str
    clinician_context: Optional[str] = None
    sessions: List[SessionDigest] = field(default_factory=list)


def digest_sessions(sessions: List[Session], limit: int) -> List[SessionDigest]:
    """Digests of the ``limit`` most recent sessions, newest first."""
    recent = sorted(sessions, key=lambda s: s.session_date, reverse=True)[:limit]
    return [
        SessionDigest(
            session_id=s.session_id,
            session_date=s.session_date,
            summary=s.best_summary(),
            notes=s.detailed_notes,
            insights=s.ai_insights,
        )
        for s in recent
    ]
