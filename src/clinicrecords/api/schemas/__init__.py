"""
API schemas package.
"""

# Common schemas
from .common import ApiResponse, ErrorResponse

# Session schemas
from .sessions import (
    AppointmentResponse,
    CreateSessionRequest,
    FileUrlResponse,
    GenerateSummaryRequest,
    ImportSessionRequest,
    RecordingResponse,
    SessionFileResponse,
    SessionResponse,
    UpdateSessionRequest,
)

# Treatment plan schemas
from .treatment_plans import (
    AddGoalRequest,
    AddImprovementRequest,
    CreateVersionRequest,
    EvolutionPointSchema,
    EvolutionReportResponse,
    GeneratePlanRequest,
    GoalReferenceRequest,
    GoalResultRequest,
    PlanDraftRequest,
    PlanProgressResponse,
    PlanVersionResponse,
    RenameGoalRequest,
    TreatmentPlanResponse,
    UpdatePlanRequest,
    UpdateStatusRequest,
    VersionComparisonResponse,
)

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "AppointmentResponse",
    "CreateSessionRequest",
    "FileUrlResponse",
    "GenerateSummaryRequest",
    "ImportSessionRequest",
    "RecordingResponse",
    "SessionFileResponse",
    "SessionResponse",
    "UpdateSessionRequest",
    "AddGoalRequest",
    "AddImprovementRequest",
    "CreateVersionRequest",
    "EvolutionPointSchema",
    "EvolutionReportResponse",
    "GeneratePlanRequest",
    "GoalReferenceRequest",
    "GoalResultRequest",
    "PlanDraftRequest",
    "PlanProgressResponse",
    "PlanVersionResponse",
    "RenameGoalRequest",
    "TreatmentPlanResponse",
    "UpdatePlanRequest",
    "UpdateStatusRequest",
    "VersionComparisonResponse",
]
