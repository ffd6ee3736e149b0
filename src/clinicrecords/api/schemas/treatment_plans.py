"""
Pydantic schemas for treatment plan, version and evolution endpoints.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...application.dto.plan_dto import PlanDraft
from ...domain.enums.statuses import GoalListKind, PlanProgressStatus, PlanStatus


class PlanDraftRequest(BaseModel):
    """Request schema for creating (or replacing) a patient's active plan."""

    start_date: Optional[date] = None
    estimated_sessions: Optional[int] = Field(None, ge=0)
    objectives: List[str] = Field(default_factory=list)
    discharge_objectives: List[str] = Field(default_factory=list)
    approaches: List[str] = Field(default_factory=list)
    short_term_goals: List[str] = Field(default_factory=list)
    long_term_goals: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    next_review_date: Optional[date] = None
    replace: bool = Field(False, description="Archive the current active plan instead of failing")

    def to_draft(self) -> PlanDraft:
        return PlanDraft(**self.model_dump(exclude={"replace"}))


class GeneratePlanRequest(BaseModel):
    context: Optional[str] = Field(None, description="Free-text clinical context for the generator")
    replace: bool = False


class UpdatePlanRequest(BaseModel):
    """Partial plan edit; ``change_summary`` also stores a version snapshot."""

    start_date: Optional[date] = None
    estimated_sessions: Optional[int] = Field(None, ge=0)
    objectives: Optional[List[str]] = None
    discharge_objectives: Optional[List[str]] = None
    approaches: Optional[List[str]] = None
    short_term_goals: Optional[List[str]] = None
    long_term_goals: Optional[List[str]] = None
    notes: Optional[str] = None
    current_status: Optional[PlanProgressStatus] = None
    current_status_notes: Optional[str] = None
    next_review_date: Optional[date] = None
    change_summary: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"change_summary"})


class GoalReferenceRequest(BaseModel):
    goal: str = Field(..., min_length=1, description="Goal id or goal text")


class GoalResultRequest(GoalReferenceRequest):
    result: Optional[str] = Field(None, description="Clinician note on the outcome")


class AddGoalRequest(BaseModel):
    kind: GoalListKind
    text: str = Field(..., min_length=1)


class RenameGoalRequest(BaseModel):
    text: str = Field(..., min_length=1)


class AddImprovementRequest(BaseModel):
    description: str = Field(..., min_length=1)
    category: str
    on: Optional[date] = Field(None, description="Day the improvement was observed; defaults to today")


class UpdateStatusRequest(BaseModel):
    current_status: PlanProgressStatus
    notes: Optional[str] = None


class CreateVersionRequest(BaseModel):
    change_summary: Optional[str] = None


class GoalSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    goal_id: str
    text: str


class GoalResultSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    goal_id: str
    goal: str
    completed: bool
    completed_at: Optional[datetime] = None
    result: Optional[str] = None


class ImprovementSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    improvement_id: str
    description: str
    date: date
    category: str


class TreatmentPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    plan_id: str
    patient_id: str
    status: PlanStatus
    start_date: date
    estimated_sessions: int
    objectives: List[str]
    discharge_objectives: List[str]
    approaches: List[str]
    short_term_goals: List[GoalSchema]
    long_term_goals: List[GoalSchema]
    notes: Optional[str] = None
    current_status: PlanProgressStatus
    current_status_notes: Optional[str] = None
    last_review_date: Optional[date] = None
    next_review_date: Optional[date] = None
    goal_results: List[GoalResultSchema]
    improvements: List[ImprovementSchema]
    created_at: datetime
    updated_at: datetime


class PlanVersionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    version_id: str
    plan_id: str
    version_number: int
    snapshot: TreatmentPlanResponse
    change_summary: Optional[str] = None
    created_at: datetime


class FieldChangeSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    field: str
    old_value: Any = None
    new_value: Any = None


class ListChangeSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    field: str
    added: List[str]
    removed: List[str]


class VersionComparisonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    from_version: int
    to_version: int
    field_changes: List[FieldChangeSchema]
    list_changes: List[ListChangeSchema]
    has_changes: bool


class EvolutionPointSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    period_key: str
    cumulative_improvements: int
    cumulative_goals_completed: int


class PlanProgressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    completed_goals: int
    total_goals: int
    goals_progress: int
    sessions_completed: int
    estimated_sessions: int
    sessions_progress: int


class EvolutionReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    report_id: str
    patient_id: str
    content: str
    session_ids: List[str]
    generated_at: datetime
