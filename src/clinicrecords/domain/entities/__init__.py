"""
Domain entities package.
"""

from .appointment import Appointment
from .evolution import EvolutionPoint, EvolutionReport, PlanProgress
from .patient import Patient
from .plan_version import (
    FieldChange,
    ListChange,
    TreatmentPlanVersion,
    VersionComparison,
    compare_versions,
)
from .session import Session
from .session_file import SessionFile
from .treatment_plan import Goal, GoalResult, Improvement, TreatmentPlan

__all__ = [
    "Appointment",
    "Patient",
    "Session",
    "SessionFile",
    "TreatmentPlan",
    "Goal",
    "GoalResult",
    "Improvement",
    "TreatmentPlanVersion",
    "VersionComparison",
    "FieldChange",
    "ListChange",
    "compare_versions",
    "EvolutionPoint",
    "EvolutionReport",
    "PlanProgress",
]
