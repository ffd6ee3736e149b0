"""Treatment plan endpoints: edits, goal ledger, improvements, versions and progress."""

from typing import List

from fastapi import APIRouter, Query, Request, status

from ..deps import EvolutionAggregatorDep, PlanLedgerDep
from ..schemas.common import ApiResponse, ErrorResponse
from ..schemas.treatment_plans import (
    AddGoalRequest,
    AddImprovementRequest,
    CreateVersionRequest,
    EvolutionPointSchema,
    GoalReferenceRequest,
    GoalResultRequest,
    PlanProgressResponse,
    PlanVersionResponse,
    RenameGoalRequest,
    TreatmentPlanResponse,
    UpdatePlanRequest,
    UpdateStatusRequest,
    VersionComparisonResponse,
)
from ..utils.responses import ok

router = APIRouter(prefix="/treatment-plans", tags=["Treatment Plans"])

ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Plan, goal or version not found"},
    409: {"model": ErrorResponse, "description": "Plan is not in a valid state for the operation"},
    422: {"model": ErrorResponse, "description": "Invalid input"},
}


@router.get("/{plan_id}", response_model=ApiResponse[TreatmentPlanResponse], responses=ERROR_RESPONSES)
async def get_plan(request: Request, plan_id: str, ledger: PlanLedgerDep):
    plan = await ledger.get(plan_id)
    return ok(request, data=TreatmentPlanResponse.model_validate(plan))


@router.patch("/{plan_id}", response_model=ApiResponse[TreatmentPlanResponse], responses=ERROR_RESPONSES)
async def update_plan(request: Request, plan_id: str, body: UpdatePlanRequest, ledger: PlanLedgerDep):
    """Edit plan fields; a ``change_summary`` also stores a version snapshot."""
    plan = await ledger.update_plan(plan_id, body.changes(), change_summary=body.change_summary)
    return ok(request, data=TreatmentPlanResponse.model_validate(plan), message="Updated")


@router.post("/{plan_id}/archive", response_model=ApiResponse[TreatmentPlanResponse], responses=ERROR_RESPONSES)
async def archive_plan(request: Request, plan_id: str, ledger: PlanLedgerDep):
    plan = await ledger.archive(plan_id)
    return ok(request, data=TreatmentPlanResponse.model_validate(plan), message="Archived")


# Goals
@router.post(
    "/{plan_id}/goals",
    response_model=ApiResponse[TreatmentPlanResponse],
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def add_goal(request: Request, plan_id: str, body: AddGoalRequest, ledger: PlanLedgerDep):
    plan = await ledger.add_goal(plan_id, body.kind, body.text)
    return ok(request, data=TreatmentPlanResponse.model_validate(plan), message="Created")


@router.patch(
    "/{plan_id}/goals/{goal_id}",
    response_model=ApiResponse[TreatmentPlanResponse],
    responses=ERROR_RESPONSES,
)
async def rename_goal(request: Request, plan_id: str, goal_id: str, body: RenameGoalRequest, ledger: PlanLedgerDep):
    """Rename a goal; its completion and result are kept."""
    plan = await ledger.rename_goal(plan_id, goal_id, body.text)
    return ok(request, data=TreatmentPlanResponse.model_validate(plan), message="Updated")


@router.post(
    "/{plan_id}/goals/toggle",
    response_model=ApiResponse[TreatmentPlanResponse],
    responses=ERROR_RESPONSES,
)
async def toggle_goal(request: Request, plan_id: str, body: GoalReferenceRequest, ledger: PlanLedgerDep):
    plan = await ledger.toggle_goal_completion(plan_id, body.goal)
    return ok(request, data=TreatmentPlanResponse.model_validate(plan), message="Updated")


@router.put(
    "/{plan_id}/goals/result",
    response_model=ApiResponse[TreatmentPlanResponse],
    responses=ERROR_RESPONSES,
)
async def set_goal_result(request: Request, plan_id: str, body: GoalResultRequest, ledger: PlanLedgerDep):
    plan = await ledger.set_goal_result(plan_id, body.goal, body.result)
    return ok(request, data=TreatmentPlanResponse.model_validate(plan), message="Updated")


# Improvements and review
@router.post(
    "/{plan_id}/improvements",
    response_model=ApiResponse[TreatmentPlanResponse],
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def add_improvement(request: Request, plan_id: str, body: AddImprovementRequest, ledger: PlanLedgerDep):
    plan = await ledger.add_improvement(plan_id, body.description, body.category, on=body.on)
    return ok(request, data=TreatmentPlanResponse.model_validate(plan), message="Created")


@router.put("/{plan_id}/status", response_model=ApiResponse[TreatmentPlanResponse], responses=ERROR_RESPONSES)
async def update_status(request: Request, plan_id: str, body: UpdateStatusRequest, ledger: PlanLedgerDep):
    plan = await ledger.update_status(plan_id, body.current_status, body.notes)
    return ok(request, data=TreatmentPlanResponse.model_validate(plan), message="Updated")


# Versions
@router.get(
    "/{plan_id}/versions",
    response_model=ApiResponse[List[PlanVersionResponse]],
    responses=ERROR_RESPONSES,
)
async def list_versions(request: Request, plan_id: str, ledger: PlanLedgerDep):
    versions = await ledger.list_versions(plan_id)
    return ok(request, data=[PlanVersionResponse.model_validate(v) for v in versions])


@router.post(
    "/{plan_id}/versions",
    response_model=ApiResponse[PlanVersionResponse],
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_version(request: Request, plan_id: str, body: CreateVersionRequest, ledger: PlanLedgerDep):
    version = await ledger.create_version(plan_id, body.change_summary)
    return ok(request, data=PlanVersionResponse.model_validate(version), message="Created")


@router.get(
    "/{plan_id}/versions/compare",
    response_model=ApiResponse[VersionComparisonResponse],
    responses=ERROR_RESPONSES,
)
async def compare_versions(
    request: Request,
    plan_id: str,
    ledger: PlanLedgerDep,
    version_a: str = Query(..., description="First version id"),
    version_b: str = Query(..., description="Second version id"),
):
    comparison = await ledger.compare_versions(version_a, version_b, plan_id=plan_id)
    return ok(request, data=VersionComparisonResponse.model_validate(comparison))


# Progress
@router.get(
    "/{plan_id}/evolution",
    response_model=ApiResponse[List[EvolutionPointSchema]],
    responses=ERROR_RESPONSES,
)
async def evolution_series(request: Request, plan_id: str, aggregator: EvolutionAggregatorDep):
    """Monthly cumulative improvements and completed goals."""
    points = await aggregator.series(plan_id)
    return ok(request, data=[EvolutionPointSchema.model_validate(p) for p in points])


@router.get(
    "/{plan_id}/progress",
    response_model=ApiResponse[PlanProgressResponse],
    responses=ERROR_RESPONSES,
)
async def plan_progress(request: Request, plan_id: str, aggregator: EvolutionAggregatorDep):
    progress = await aggregator.plan_progress(plan_id)
    return ok(request, data=PlanProgressResponse.model_validate(progress))
