"""Immutable treatment plan snapshots and the diff between two of them."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from ...core.utils.datetime_utils import get_current_timestamp
from .treatment_plan import TreatmentPlan

INITIAL_VERSION_SUMMARY = "Initial version"

SCALAR_FIELDS = ("estimated_sessions", "current_status", "notes")
LIST_FIELDS = (
    "objectives",
    "discharge_objectives",
    "short_term_goals",
    "long_term_goals",
    "approaches",
)


@dataclass
class TreatmentPlanVersion:
    """Full copy of a plan at one point in time."""

    version_id: str
    plan_id: str
    version_number: int
    snapshot: TreatmentPlan
    change_summary: Optional[str] = None
    created_at: datetime = field(default_factory=get_current_timestamp)


@dataclass
class FieldChange:
    field: str
    old_value: Any
    new_value: Any


@dataclass
class ListChange:
    field: str
    added: List[str]
    removed: List[str]


@dataclass
class VersionComparison:
    from_version: int
    to_version: int
    field_changes: List[FieldChange] = field(default_factory=list)
    list_changes: List[ListChange] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.field_changes or self.list_changes)


def _texts(plan: TreatmentPlan, name: str) -> List[str]:
    values = getattr(plan, name)
    if name in ("short_term_goals", "long_term_goals"):
        return [goal.text for goal in values]
    return list(values)


def compare_versions(older: TreatmentPlanVersion, newer: TreatmentPlanVersion) -> VersionComparison:
    """Field-level differences between two snapshots of the same plan."""
    before, after = older.snapshot, newer.snapshot
    comparison = VersionComparison(from_version=older.version_number, to_version=newer.version_number)

    for name in SCALAR_FIELDS:
        old_value, new_value = getattr(before, name), getattr(after, name)
        if old_value != new_value:
            comparison.field_changes.append(FieldChange(name, old_value, new_value))

    for name in LIST_FIELDS:
        old_items, new_items = _texts(before, name), _texts(after, name)
        added = [item for item in new_items if item not in old_items]
        removed = [item for item in old_items if item not in new_items]
        if added or removed:
            comparison.list_changes.append(ListChange(name, added, removed))

    if len(before.improvements) != len(after.improvements):
        comparison.field_changes.append(
            FieldChange("improvements_count", len(before.improvements), len(after.improvements))
        )
    completed_before = sum(1 for r in before.goal_results if r.completed)
    completed_after = sum(1 for r in after.goal_results if r.completed)
    if completed_before != completed_after:
        comparison.field_changes.append(FieldChange("completed_goals", completed_before, completed_after))

    return comparison
