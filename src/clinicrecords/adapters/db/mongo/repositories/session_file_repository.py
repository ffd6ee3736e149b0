"""
Session file metadata repository (used by the blob storage adapter).
"""

import logging
from typing import List, Optional

from pymongo.errors import PyMongoError

from clinicrecords.core.exceptions import DatabaseError
from clinicrecords.domain.entities.session_file import SessionFile

from ..mappers import session_file_from_document, session_file_to_document
from ..models.session_m import SessionFileMongo

logger = logging.getLogger(__name__)


class SessionFileRepository:
    """Repository for session file metadata."""

    async def create(self, stored: SessionFile, container_name: str) -> SessionFile:
        try:
            document = session_file_to_document(stored, container_name)
            await document.insert()
        except PyMongoError as e:
            logger.error(f"Failed to store file metadata {stored.file_id}: {e}")
            raise DatabaseError(f"Failed to store file metadata: {e}", {"file_id": stored.file_id})
        return session_file_from_document(document)

    async def get_by_id(self, file_id: str) -> Optional[SessionFile]:
        try:
            document = await SessionFileMongo.find_one(SessionFileMongo.file_id == file_id)
        except PyMongoError as e:
            raise DatabaseError(f"Failed to read file metadata: {e}", {"file_id": file_id})
        return session_file_from_document(document) if document else None

    async def list_by_session(self, session_id: str) -> List[SessionFile]:
        try:
            documents = (
                await SessionFileMongo.find(SessionFileMongo.session_id == session_id)
                .sort("-created_at")
                .to_list()
            )
        except PyMongoError as e:
            raise DatabaseError(f"Failed to list session files: {e}", {"session_id": session_id})
        return [session_file_from_document(d) for d in documents]

    async def delete(self, file_id: str) -> bool:
        try:
            result = await SessionFileMongo.find_one(SessionFileMongo.file_id == file_id).delete()
        except PyMongoError as e:
            raise DatabaseError(f"Failed to delete file metadata: {e}", {"file_id": file_id})
        return bool(result and result.deleted_count)
