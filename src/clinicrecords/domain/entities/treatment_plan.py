"""Treatment plan entity with its goal ledger and improvement log.

Goals carry stable ids so that editing a goal's text never orphans its
result. Goal references accepted by the mutators may be either a goal id or
a literal goal text; text resolves to the first goal carrying it.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from ...core.utils.datetime_utils import ensure_utc, get_current_date, get_current_timestamp
from ...core.utils.string_utils import clean_text, generate_id, is_blank
from ..enums.statuses import (
    IMPROVEMENT_CATEGORIES,
    GoalListKind,
    PlanProgressStatus,
    PlanStatus,
)
from ..errors import GoalNotFoundError, InvalidStateError, ValidationError

TEXT_LIST_FIELDS = ("objectives", "discharge_objectives", "approaches")
GOAL_LIST_FIELDS = ("short_term_goals", "long_term_goals")

# Fields accepted by ``apply_changes``.
EDITABLE_FIELDS = frozenset(
    {
        "start_date",
        "estimated_sessions",
        "notes",
        "current_status",
        "current_status_notes",
        "next_review_date",
        *TEXT_LIST_FIELDS,
        *GOAL_LIST_FIELDS,
    }
)


def percent_half_up(part: int, whole: int) -> int:
    """Integer percentage of part/whole, rounding .5 upwards; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def _clean_list(values: Optional[Iterable[str]]) -> List[str]:
    return [value.strip() for value in (values or []) if not is_blank(value)]


def _validate_estimated_sessions(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError("estimated_sessions", "Estimated sessions must be a non-negative integer", value)
    return value


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    return value


@dataclass
class Goal:
    """Short- or long-term goal with a stable identity."""

    goal_id: str
    text: str

    @classmethod
    def new(cls, text: str) -> "Goal":
        if is_blank(text):
            raise ValidationError("goal", "Goal text is required", text)
        return cls(goal_id=generate_id(), text=text.strip())


@dataclass
class GoalResult:
    """Completion state and outcome note of one goal."""

    goal_id: str
    goal: str
    completed: bool = False
    completed_at: Optional[datetime] = None
    result: Optional[str] = None


@dataclass
class Improvement:
    """Append-only improvement log entry."""

    improvement_id: str
    description: str
    date: date
    category: str


@dataclass
class TreatmentPlan:
    """Treatment plan entity."""

    plan_id: str
    patient_id: str
    status: PlanStatus = PlanStatus.ACTIVE
    start_date: date = field(default_factory=get_current_date)
    estimated_sessions: int = 12
    objectives: List[str] = field(default_factory=list)
    discharge_objectives: List[str] = field(default_factory=list)
    approaches: List[str] = field(default_factory=list)
    short_term_goals: List[Goal] = field(default_factory=list)
    long_term_goals: List[Goal] = field(default_factory=list)
    notes: Optional[str] = None
    current_status: PlanProgressStatus = PlanProgressStatus.EM_ANDAMENTO
    current_status_notes: Optional[str] = None
    last_review_date: Optional[date] = None
    next_review_date: Optional[date] = None
    goal_results: List[GoalResult] = field(default_factory=list)
    improvements: List[Improvement] = field(default_factory=list)
    created_at: datetime = field(default_factory=get_current_timestamp)
    updated_at: datetime = field(default_factory=get_current_timestamp)

    def __post_init__(self) -> None:
        if not self.patient_id:
            raise ValidationError("patient_id", "Patient is required", self.patient_id)
        self.status = PlanStatus(self.status)
        try:
            self.current_status = PlanProgressStatus(self.current_status)
        except ValueError:
            raise ValidationError("current_status", "Unknown plan status", self.current_status)
        self.estimated_sessions = _validate_estimated_sessions(self.estimated_sessions)
        self.start_date = _as_date(self.start_date)
        for name in TEXT_LIST_FIELDS:
            setattr(self, name, _clean_list(getattr(self, name)))

    # Lifecycle
    @property
    def is_active(self) -> bool:
        return self.status == PlanStatus.ACTIVE

    def archive(self, now: datetime) -> None:
        if not self.is_active:
            raise InvalidStateError(
                f"Treatment plan '{self.plan_id}' is already archived",
                {"plan_id": self.plan_id},
            )
        self.status = PlanStatus.ARCHIVED
        self.updated_at = now

    def reactivate(self, now: datetime) -> None:
        self.status = PlanStatus.ACTIVE
        self.updated_at = now

    # Goals
    def all_goals(self) -> List[Goal]:
        return [*self.short_term_goals, *self.long_term_goals]

    def goals_of(self, kind: GoalListKind) -> List[Goal]:
        if GoalListKind(kind) == GoalListKind.SHORT_TERM:
            return self.short_term_goals
        return self.long_term_goals

    def find_goal(self, reference: str) -> Goal:
        """Resolve a goal id, or else the first goal whose text matches."""
        goals = self.all_goals()
        for goal in goals:
            if goal.goal_id == reference:
                return goal
        for goal in goals:
            if goal.text == reference:
                return goal
        raise GoalNotFoundError(self.plan_id, reference)

    def result_for(self, goal_id: str) -> Optional[GoalResult]:
        for result in self.goal_results:
            if result.goal_id == goal_id:
                return result
        return None

    def toggle_goal(self, reference: str, now: datetime) -> GoalResult:
        goal = self.find_goal(reference)
        result = self.result_for(goal.goal_id)
        if result is None:
            result = GoalResult(goal_id=goal.goal_id, goal=goal.text, completed=True, completed_at=now)
            self.goal_results.append(result)
        else:
            result.completed = not result.completed
            result.completed_at = now if result.completed else None
            result.goal = goal.text
        self.updated_at = now
        return result

    def set_goal_result(self, reference: str, note: Optional[str], now: datetime) -> GoalResult:
        goal = self.find_goal(reference)
        result = self.result_for(goal.goal_id)
        if result is None:
            result = GoalResult(goal_id=goal.goal_id, goal=goal.text, completed=False)
            self.goal_results.append(result)
        result.result = clean_text(note)
        result.goal = goal.text
        self.updated_at = now
        return result

    def add_goal(self, kind: GoalListKind, text: str, now: datetime) -> Goal:
        goal = Goal.new(text)
        self.goals_of(kind).append(goal)
        self.updated_at = now
        return goal

    def rename_goal(self, goal_id: str, text: str, now: datetime) -> Goal:
        if is_blank(text):
            raise ValidationError("goal", "Goal text is required", text)
        goal = next((g for g in self.all_goals() if g.goal_id == goal_id), None)
        if goal is None:
            raise GoalNotFoundError(self.plan_id, goal_id)
        goal.text = text.strip()
        result = self.result_for(goal_id)
        if result is not None:
            result.goal = goal.text
        self.updated_at = now
        return goal

    def replace_goals(self, kind: GoalListKind, texts: Iterable[str]) -> List[Goal]:
        """Set a goal list from texts, keeping the ids of goals whose text is unchanged."""
        unused = list(self.goals_of(kind))
        goals: List[Goal] = []
        for text in _clean_list(texts):
            match = next((g for g in unused if g.text == text), None)
            if match is not None:
                unused.remove(match)
                goals.append(match)
            else:
                goals.append(Goal.new(text))
        if GoalListKind(kind) == GoalListKind.SHORT_TERM:
            self.short_term_goals = goals
        else:
            self.long_term_goals = goals
        return goals

    # Improvements and review
    def add_improvement(
        self, description: str, category: str, on: Union[date, datetime], now: datetime
    ) -> Improvement:
        if is_blank(description):
            raise ValidationError("description", "Improvement description is required", description)
        if category not in IMPROVEMENT_CATEGORIES:
            raise ValidationError("category", "Unknown improvement category", category)
        improvement = Improvement(
            improvement_id=generate_id(),
            description=description.strip(),
            date=_as_date(on),
            category=category,
        )
        self.improvements.append(improvement)
        self.updated_at = now
        return improvement

    def update_status(
        self, current_status: PlanProgressStatus, notes: Optional[str], now: datetime
    ) -> None:
        try:
            self.current_status = PlanProgressStatus(current_status)
        except ValueError:
            raise ValidationError("current_status", "Unknown plan status", current_status)
        self.current_status_notes = clean_text(notes)
        self.last_review_date = now.date()
        self.updated_at = now

    def apply_changes(self, changes: Dict[str, Any], now: datetime) -> List[str]:
        """Apply edited plan fields; returns the names of the fields written."""
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            field_name = sorted(unknown)[0]
            raise ValidationError(field_name, "Field cannot be updated", changes[field_name])

        for name, value in changes.items():
            if name in GOAL_LIST_FIELDS:
                kind = GoalListKind.SHORT_TERM if name == "short_term_goals" else GoalListKind.LONG_TERM
                self.replace_goals(kind, value)
            elif name in TEXT_LIST_FIELDS:
                setattr(self, name, _clean_list(value))
            elif name == "estimated_sessions":
                self.estimated_sessions = _validate_estimated_sessions(value)
            elif name == "current_status":
                try:
                    self.current_status = PlanProgressStatus(value)
                except ValueError:
                    raise ValidationError("current_status", "Unknown plan status", value)
            elif name == "start_date":
                if value is None:
                    raise ValidationError("start_date", "Start date is required")
                self.start_date = _as_date(value)
            elif name in ("notes", "current_status_notes"):
                setattr(self, name, clean_text(value))
            else:
                setattr(self, name, value)
        self.updated_at = now
        return sorted(changes)

    # Progress
    def completed_goal_count(self) -> int:
        """Goals of the plan whose result is marked completed."""
        count = 0
        for goal in self.all_goals():
            result = self.result_for(goal.goal_id)
            if result is not None and result.completed:
                count += 1
        return count

    def goals_progress(self) -> int:
        return percent_half_up(self.completed_goal_count(), len(self.all_goals()))

    def sessions_progress(self, sessions_completed: int) -> int:
        return min(100, percent_half_up(sessions_completed, self.estimated_sessions))
