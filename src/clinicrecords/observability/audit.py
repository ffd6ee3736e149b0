"""Audit logging utilities.

Audit events are written through the structured logger on ``clinicrecords.audit``;
with the JSON formatter each event becomes one JSON line carrying its fields.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..core.structured_logger import get_logger

AUDIT_LOGGER_NAME = "clinicrecords.audit"

audit_logger = get_logger(AUDIT_LOGGER_NAME)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def audit_log_event(
    *,
    event: str,
    patient_id: Optional[str] = None,
    session_id: Optional[str] = None,
    plan_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    audit_logger.info(
        f"AUDIT {event}",
        audit_ts=_now_iso(),
        event=event,
        patient_id=patient_id,
        session_id=session_id,
        plan_id=plan_id,
        payload=payload or {},
    )
