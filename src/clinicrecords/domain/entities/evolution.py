"""Derived progress values and stored evolution reports."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from ...core.utils.datetime_utils import get_current_timestamp


@dataclass(frozen=True)
class EvolutionPoint:
    """Running totals at the end of one calendar month ("YYYY-MM")."""

    period_key: str
    cumulative_improvements: int
    cumulative_goals_completed: int


@dataclass(frozen=True)
class PlanProgress:
    completed_goals: int
    total_goals: int
    goals_progress: int
    sessions_completed: int
    estimated_sessions: int
    sessions_progress: int


@dataclass
class EvolutionReport:
    """Narrative evolution report generated from a patient's sessions."""

    report_id: str
    patient_id: str
    content: str
    session_ids: List[str] = field(default_factory=list)
    generated_at: datetime = field(default_factory=get_current_timestamp)
