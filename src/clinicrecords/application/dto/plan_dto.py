"""Treatment plan DTOs."""

from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any, Dict, List, Optional

from ...domain.errors import ValidationError


@dataclass
class PlanDraft:
    """Plan data supplied by a clinician or by the plan generator.

    Goals are plain texts; ids are assigned when the plan is stored.
    """

    start_date: Optional[date] = None
    estimated_sessions: Optional[int] = None
    objectives: List[str] = field(default_factory=list)
    discharge_objectives: List[str] = field(default_factory=list)
    approaches: List[str] = field(default_factory=list)
    short_term_goals: List[str] = field(default_factory=list)
    long_term_goals: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    next_review_date: Optional[date] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanDraft":
        """Build a draft from a loosely-typed mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known and value is not None}
        for name in ("objectives", "discharge_objectives", "approaches", "short_term_goals", "long_term_goals"):
            if name in values:
                if isinstance(values[name], str):
                    values[name] = [values[name]]
                elif not isinstance(values[name], list):
                    raise ValidationError(name, "Expected a list of texts", values[name])
                values[name] = [str(item) for item in values[name]]
        if isinstance(values.get("estimated_sessions"), str):
            try:
                values["estimated_sessions"] = int(values["estimated_sessions"])
            except ValueError:
                raise ValidationError("estimated_sessions", "Expected an integer", values["estimated_sessions"])
        for name in ("start_date", "next_review_date"):
            if isinstance(values.get(name), str):
                try:
                    values[name] = date.fromisoformat(values[name][:10])
                except ValueError:
                    raise ValidationError(name, "Expected an ISO date", values[name])
        return cls(**values)
