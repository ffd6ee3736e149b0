"""One-directional status mirroring from a session to its linked appointment."""

import logging
from typing import Optional

from ...core.exceptions import ExternalServiceError
from ...domain.entities.appointment import Appointment
from ...domain.enums.statuses import AppointmentStatus, SessionStatus
from ..ports.repositories.appointment_repo import AppointmentRepository

logger = logging.getLogger(__name__)

SESSION_TO_APPOINTMENT_STATUS = {
    SessionStatus.SCHEDULED: AppointmentStatus.SCHEDULED,
    SessionStatus.COMPLETED: AppointmentStatus.DONE,
    SessionStatus.CANCELLED: AppointmentStatus.CANCELLED,
    SessionStatus.RESCHEDULED: AppointmentStatus.SCHEDULED,
    SessionStatus.NO_SHOW: AppointmentStatus.CANCELLED,
}


def map_session_status(status: SessionStatus) -> AppointmentStatus:
    return SESSION_TO_APPOINTMENT_STATUS[SessionStatus(status)]


class AppointmentStatusBridge:
    """Writes the mapped session status onto the linked appointment.

    Appointment edits never flow back to sessions.
    """

    def __init__(self, appointment_repository: AppointmentRepository):
        self._appointment_repository = appointment_repository

    async def on_session_status_change(
        self, appointment_id: Optional[str], session_status: SessionStatus
    ) -> Optional[Appointment]:
        if not appointment_id:
            return None

        mapped = map_session_status(session_status)
        try:
            updated = await self._appointment_repository.update(appointment_id, {"status": mapped})
        except ExternalServiceError:
            logger.error(
                f"Linked appointment {appointment_id} could not be updated; status {mapped.value} not mirrored",
                exc_info=True,
            )
            return None
        if updated is None:
            logger.warning(
                f"Linked appointment {appointment_id} not found; status {mapped.value} not mirrored"
            )
            return None

        logger.info(f"Appointment {appointment_id} status set to {mapped.value}")
        return updated
