"""
Conversion between domain entities and stored MongoDB documents.

Entities and documents share field names; ``encode_value`` turns entity
values (dataclasses, enums, calendar dates) into what the documents store,
which also makes it usable for ``$set`` partial updates.
"""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from clinicrecords.domain.entities.appointment import Appointment
from clinicrecords.domain.entities.evolution import EvolutionReport
from clinicrecords.domain.entities.patient import Patient
from clinicrecords.domain.entities.plan_version import TreatmentPlanVersion
from clinicrecords.domain.entities.session import Session
from clinicrecords.domain.entities.session_file import SessionFile
from clinicrecords.domain.entities.treatment_plan import (
    Goal,
    GoalResult,
    Improvement,
    TreatmentPlan,
)

from .models.scheduling_m import AppointmentMongo, PatientMongo
from .models.session_m import SessionFileMongo, SessionMongo
from .models.treatment_plan_m import (
    EvolutionReportMongo,
    PlanVersionMongo,
    TreatmentPlanMongo,
)

DOCUMENT_EXCLUDE = {"id", "revision_id"}


def encode_value(value: Any) -> Any:
    """Entity value to its stored representation."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: encode_value(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    if isinstance(value, dict):
        return {key: encode_value(item) for key, item in value.items()}
    return value


def encode_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    return {name: encode_value(value) for name, value in changes.items()}


def _document_data(document: Any) -> Dict[str, Any]:
    return document.model_dump(exclude=DOCUMENT_EXCLUDE)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value[:10])


# Sessions
def session_to_document(session: Session) -> SessionMongo:
    return SessionMongo(**encode_value(session))


def session_from_document(document: SessionMongo) -> Session:
    return Session(**_document_data(document))


def session_file_to_document(stored: SessionFile, container_name: str) -> SessionFileMongo:
    return SessionFileMongo(container_name=container_name, **encode_value(stored))


def session_file_from_document(document: SessionFileMongo) -> SessionFile:
    data = _document_data(document)
    data.pop("container_name", None)
    return SessionFile(**data)


# Scheduling
def appointment_from_document(document: AppointmentMongo) -> Appointment:
    return Appointment(**_document_data(document))


def patient_from_document(document: PatientMongo) -> Patient:
    return Patient(**_document_data(document))


# Treatment plans
def plan_to_dict(plan: TreatmentPlan) -> Dict[str, Any]:
    return encode_value(plan)


def plan_from_dict(data: Dict[str, Any]) -> TreatmentPlan:
    return TreatmentPlan(
        plan_id=data["plan_id"],
        patient_id=data["patient_id"],
        status=data.get("status", "active"),
        start_date=_parse_date(data["start_date"]),
        estimated_sessions=data.get("estimated_sessions", 12),
        objectives=list(data.get("objectives") or []),
        discharge_objectives=list(data.get("discharge_objectives") or []),
        approaches=list(data.get("approaches") or []),
        short_term_goals=[Goal(**goal) for goal in data.get("short_term_goals") or []],
        long_term_goals=[Goal(**goal) for goal in data.get("long_term_goals") or []],
        notes=data.get("notes"),
        current_status=data.get("current_status", "em_andamento"),
        current_status_notes=data.get("current_status_notes"),
        last_review_date=_parse_date(data.get("last_review_date")),
        next_review_date=_parse_date(data.get("next_review_date")),
        goal_results=[GoalResult(**result) for result in data.get("goal_results") or []],
        improvements=[
            Improvement(
                improvement_id=item["improvement_id"],
                description=item["description"],
                date=_parse_date(item["date"]),
                category=item["category"],
            )
            for item in data.get("improvements") or []
        ],
        created_at=data["created_at"],
        updated_at=data["updated_at"],
    )


def plan_to_document(plan: TreatmentPlan) -> TreatmentPlanMongo:
    return TreatmentPlanMongo(**plan_to_dict(plan))


def plan_from_document(document: TreatmentPlanMongo) -> TreatmentPlan:
    return plan_from_dict(_document_data(document))


def version_to_document(version: TreatmentPlanVersion) -> PlanVersionMongo:
    return PlanVersionMongo(
        version_id=version.version_id,
        plan_id=version.plan_id,
        version_number=version.version_number,
        snapshot=plan_to_dict(version.snapshot),
        change_summary=version.change_summary,
        created_at=version.created_at,
    )


def version_from_document(document: PlanVersionMongo) -> TreatmentPlanVersion:
    return TreatmentPlanVersion(
        version_id=document.version_id,
        plan_id=document.plan_id,
        version_number=document.version_number,
        snapshot=plan_from_dict(document.snapshot),
        change_summary=document.change_summary,
        created_at=document.created_at,
    )


# Evolution reports
def report_to_document(report: EvolutionReport) -> EvolutionReportMongo:
    return EvolutionReportMongo(**encode_value(report))


def report_from_document(document: EvolutionReportMongo) -> EvolutionReport:
    return EvolutionReport(**_document_data(document))
