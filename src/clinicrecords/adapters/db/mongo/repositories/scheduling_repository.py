"""
MongoDB implementations of the appointment and patient directory ports.
"""

import logging
from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

from clinicrecords.application.ports.repositories.appointment_repo import AppointmentRepository
from clinicrecords.application.ports.repositories.patient_repo import PatientRepository
from clinicrecords.core.exceptions import DatabaseError
from clinicrecords.domain.entities.appointment import Appointment
from clinicrecords.domain.entities.patient import Patient

from ..mappers import appointment_from_document, encode_changes, patient_from_document
from ..models.scheduling_m import AppointmentMongo, PatientMongo

logger = logging.getLogger(__name__)


class MongoAppointmentRepository(AppointmentRepository):
    async def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        try:
            document = await AppointmentMongo.find_one(AppointmentMongo.appointment_id == appointment_id)
        except PyMongoError as e:
            raise DatabaseError(f"Failed to read appointment: {e}", {"appointment_id": appointment_id})
        return appointment_from_document(document) if document else None

    async def list_by_patient(self, patient_id: str) -> List[Appointment]:
        try:
            documents = (
                await AppointmentMongo.find(AppointmentMongo.patient_id == patient_id)
                .sort("+date_time")
                .to_list()
            )
        except PyMongoError as e:
            raise DatabaseError(f"Failed to list appointments: {e}", {"patient_id": patient_id})
        return [appointment_from_document(d) for d in documents]

    async def update(self, appointment_id: str, changes: Dict[str, Any]) -> Optional[Appointment]:
        """Keyed ``$set`` on one appointment; other appointments are never touched."""
        try:
            result = await AppointmentMongo.find_one(
                AppointmentMongo.appointment_id == appointment_id
            ).update({"$set": encode_changes(changes)})
            if result is None or result.matched_count == 0:
                return None
            document = await AppointmentMongo.find_one(AppointmentMongo.appointment_id == appointment_id)
        except PyMongoError as e:
            logger.error(f"Failed to update appointment {appointment_id}: {e}")
            raise DatabaseError(f"Failed to update appointment: {e}", {"appointment_id": appointment_id})
        return appointment_from_document(document) if document else None


class MongoPatientRepository(PatientRepository):
    async def find_by_id(self, patient_id: str) -> Optional[Patient]:
        try:
            document = await PatientMongo.find_one(PatientMongo.patient_id == patient_id)
        except PyMongoError as e:
            raise DatabaseError(f"Failed to read patient: {e}", {"patient_id": patient_id})
        return patient_from_document(document) if document else None
