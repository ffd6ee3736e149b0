"""
MongoDB implementation of SessionRepository.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from beanie.operators import In
from pymongo.errors import PyMongoError

from clinicrecords.application.ports.repositories.session_repo import SessionRepository
from clinicrecords.core.exceptions import DatabaseError
from clinicrecords.domain.entities.session import Session

from ..mappers import encode_changes, session_from_document, session_to_document
from ..models.session_m import SessionMongo

logger = logging.getLogger(__name__)


class MongoSessionRepository(SessionRepository):
    """MongoDB implementation of SessionRepository."""

    async def create(self, session: Session) -> Session:
        try:
            document = session_to_document(session)
            await document.insert()
            return session_from_document(document)
        except PyMongoError as e:
            logger.error(f"Failed to create session {session.session_id}: {e}")
            raise DatabaseError(f"Failed to create session: {e}", {"session_id": session.session_id})

    async def get_by_id(self, session_id: str) -> Optional[Session]:
        try:
            document = await SessionMongo.find_one(SessionMongo.session_id == session_id)
        except PyMongoError as e:
            raise DatabaseError(f"Failed to read session: {e}", {"session_id": session_id})
        return session_from_document(document) if document else None

    async def list_by_patient(self, patient_id: str) -> List[Session]:
        try:
            documents = await SessionMongo.find(SessionMongo.patient_id == patient_id).to_list()
        except PyMongoError as e:
            raise DatabaseError(f"Failed to list sessions: {e}", {"patient_id": patient_id})
        return [session_from_document(d) for d in documents]

    async def update(self, session_id: str, changes: Dict[str, Any]) -> Optional[Session]:
        try:
            result = await SessionMongo.find_one(SessionMongo.session_id == session_id).update(
                {"$set": encode_changes(changes)}
            )
            if result is None or result.matched_count == 0:
                return None
            document = await SessionMongo.find_one(SessionMongo.session_id == session_id)
        except PyMongoError as e:
            logger.error(f"Failed to update session {session_id}: {e}")
            raise DatabaseError(f"Failed to update session: {e}", {"session_id": session_id})
        return session_from_document(document) if document else None

    async def delete(self, session_id: str) -> bool:
        try:
            result = await SessionMongo.find_one(SessionMongo.session_id == session_id).delete()
        except PyMongoError as e:
            raise DatabaseError(f"Failed to delete session: {e}", {"session_id": session_id})
        return bool(result and result.deleted_count)

    async def find_linked_appointment_ids(self, appointment_ids: Iterable[str]) -> Set[str]:
        ids = list(appointment_ids)
        if not ids:
            return set()
        try:
            documents = await SessionMongo.find(In(SessionMongo.appointment_id, ids)).to_list()
        except PyMongoError as e:
            raise DatabaseError(f"Failed to read linked appointments: {e}")
        return {d.appointment_id for d in documents if d.appointment_id}
