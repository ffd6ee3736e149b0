"""
MongoDB Beanie models for treatment plans, plan versions and evolution reports.

Calendar dates are stored as ISO strings ("YYYY-MM-DD").
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from beanie import Document, Indexed
from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING, IndexModel


class GoalMongo(BaseModel):
    goal_id: str
    text: str


class GoalResultMongo(BaseModel):
    goal_id: str
    goal: str
    completed: bool = False
    completed_at: Optional[datetime] = None
    result: Optional[str] = None


class ImprovementMongo(BaseModel):
    improvement_id: str
    description: str
    date: str
    category: str


class TreatmentPlanMongo(Document):
    """MongoDB model for a treatment plan."""

    plan_id: Indexed(str, unique=True) = Field(..., description="Plan ID")
    patient_id: str = Field(..., description="Patient ID reference")
    status: str = Field(default="active")
    start_date: str
    estimated_sessions: int = 12
    objectives: List[str] = Field(default_factory=list)
    discharge_objectives: List[str] = Field(default_factory=list)
    approaches: List[str] = Field(default_factory=list)
    short_term_goals: List[GoalMongo] = Field(default_factory=list)
    long_term_goals: List[GoalMongo] = Field(default_factory=list)
    notes: Optional[str] = None
    current_status: str = Field(default="em_andamento")
    current_status_notes: Optional[str] = None
    last_review_date: Optional[str] = None
    next_review_date: Optional[str] = None
    goal_results: List[GoalResultMongo] = Field(default_factory=list)
    improvements: List[ImprovementMongo] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Settings:
        name = "treatment_plans"
        indexes = [
            IndexModel([("patient_id", ASCENDING), ("status", ASCENDING)], name="patient_status"),
            IndexModel(
                [("patient_id", ASCENDING)],
                name="one_active_plan_per_patient",
                unique=True,
                partialFilterExpression={"status": "active"},
            ),
        ]


class PlanVersionMongo(Document):
    version_id: Indexed(str, unique=True) = Field(..., description="Version ID")
    plan_id: str = Field(..., description="Plan ID reference")
    version_number: int
    snapshot: Dict[str, Any] = Field(..., description="Full plan copy")
    change_summary: Optional[str] = None
    created_at: datetime

    class Settings:
        name = "treatment_plan_versions"
        indexes = [
            IndexModel(
                [("plan_id", ASCENDING), ("version_number", DESCENDING)],
                name="plan_version_number",
                unique=True,
            ),
        ]


class EvolutionReportMongo(Document):
    report_id: Indexed(str, unique=True) = Field(..., description="Report ID")
    patient_id: str = Field(..., description="Patient ID reference")
    content: str
    session_ids: List[str] = Field(default_factory=list)
    generated_at: datetime

    class Settings:
        name = "evolution_reports"
        indexes = [
            "patient_id",
            "generated_at",
        ]
