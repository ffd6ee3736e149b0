"""Patient-scoped endpoints: session history, unlinked appointments, plans and evolution reports."""

from typing import List, Optional

from fastapi import APIRouter, Request, status

from ...domain.enums.statuses import OperationKind
from ..deps import EvolutionAggregatorDep, InFlightDep, PlanLedgerDep, SessionStoreDep
from ..schemas.common import ApiResponse, ErrorResponse
from ..schemas.sessions import AppointmentResponse, SessionResponse
from ..schemas.treatment_plans import (
    EvolutionReportResponse,
    GeneratePlanRequest,
    PlanDraftRequest,
    TreatmentPlanResponse,
)
from ..utils.responses import ok

router = APIRouter(prefix="/patients", tags=["Patients"])

ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Patient not found"},
    409: {"model": ErrorResponse, "description": "Active plan exists or operation in progress"},
    422: {"model": ErrorResponse, "description": "Invalid input or insufficient data"},
    502: {"model": ErrorResponse, "description": "External service failure"},
}


@router.get("/{patient_id}/sessions", response_model=ApiResponse[List[SessionResponse]])
async def list_sessions(request: Request, patient_id: str, store: SessionStoreDep):
    """Sessions of the patient, most recent first."""
    sessions = await store.list(patient_id)
    return ok(request, data=[SessionResponse.model_validate(s) for s in sessions])


@router.get(
    "/{patient_id}/appointments/unlinked",
    response_model=ApiResponse[List[AppointmentResponse]],
)
async def list_unlinked_appointments(request: Request, patient_id: str, store: SessionStoreDep):
    """Appointments of the patient that no session references yet."""
    appointments = await store.unlinked_appointments(patient_id)
    return ok(request, data=[AppointmentResponse.model_validate(a) for a in appointments])


# Treatment plans
@router.get(
    "/{patient_id}/treatment-plans/active",
    response_model=ApiResponse[Optional[TreatmentPlanResponse]],
)
async def get_active_plan(request: Request, patient_id: str, ledger: PlanLedgerDep):
    plan = await ledger.get_active(patient_id)
    if plan is None:
        return ok(request, data=None, message="No active treatment plan")
    return ok(request, data=TreatmentPlanResponse.model_validate(plan))


@router.get(
    "/{patient_id}/treatment-plans/archived",
    response_model=ApiResponse[List[TreatmentPlanResponse]],
)
async def list_archived_plans(request: Request, patient_id: str, ledger: PlanLedgerDep):
    plans = await ledger.list_archived(patient_id)
    return ok(request, data=[TreatmentPlanResponse.model_validate(p) for p in plans])


@router.post(
    "/{patient_id}/treatment-plans",
    response_model=ApiResponse[TreatmentPlanResponse],
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_plan(request: Request, patient_id: str, body: PlanDraftRequest, ledger: PlanLedgerDep):
    """
    Create the patient's active treatment plan.

    Fails with 409 when an active plan exists, unless ``replace`` is set, in
    which case the current plan is archived first.
    """
    plan = await ledger.create_or_replace(patient_id, body.to_draft(), replace=body.replace)
    return ok(request, data=TreatmentPlanResponse.model_validate(plan), message="Created")


@router.post(
    "/{patient_id}/treatment-plans/generate",
    response_model=ApiResponse[TreatmentPlanResponse],
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def generate_plan(request: Request, patient_id: str, body: GeneratePlanRequest, ledger: PlanLedgerDep):
    """Draft a plan with AI from the patient's completed sessions and store it."""
    plan = await ledger.generate_plan(patient_id, context=body.context, replace=body.replace)
    return ok(request, data=TreatmentPlanResponse.model_validate(plan), message="Generated")


# Evolution reports
@router.post(
    "/{patient_id}/evolution-reports",
    response_model=ApiResponse[EvolutionReportResponse],
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def generate_evolution_report(request: Request, patient_id: str, aggregator: EvolutionAggregatorDep):
    report = await aggregator.generate_evolution_report(patient_id)
    return ok(request, data=EvolutionReportResponse.model_validate(report), message="Generated")


@router.get(
    "/{patient_id}/evolution-reports",
    response_model=ApiResponse[List[EvolutionReportResponse]],
)
async def list_evolution_reports(request: Request, patient_id: str, aggregator: EvolutionAggregatorDep):
    reports = await aggregator.list_reports(patient_id)
    return ok(request, data=[EvolutionReportResponse.model_validate(r) for r in reports])


@router.get("/{patient_id}/operations/{kind}", response_model=ApiResponse[dict])
async def operation_status(request: Request, patient_id: str, kind: OperationKind, inflight: InFlightDep):
    return ok(request, data={"operation": kind.value, "in_flight": inflight.is_in_flight(patient_id, kind)})
