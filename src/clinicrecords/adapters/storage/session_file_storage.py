"""
File storage port backed by Azure Blob Storage (bytes) and MongoDB (metadata).
"""

import logging
import time
from typing import List, Optional

from clinicrecords.adapters.db.mongo.repositories.session_file_repository import SessionFileRepository
from clinicrecords.application.ports.services.file_storage_service import FileStorageService
from clinicrecords.core.utils.datetime_utils import get_current_timestamp
from clinicrecords.core.utils.string_utils import generate_id
from clinicrecords.domain.entities.session_file import SessionFile
from clinicrecords.domain.value_objects.file_blob import FileBlob

from .azure_blob_service import AzureBlobStorageService

logger = logging.getLogger(__name__)


def build_storage_path(session_id: str, file_name: str, timestamp_ms: Optional[int] = None) -> str:
    """``{session_id}/{timestamp_ms}_{file_name}``"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{session_id}/{timestamp_ms}_{file_name}"


class BlobSessionFileStorage(FileStorageService):
    def __init__(self, blob_service: AzureBlobStorageService, file_repository: SessionFileRepository):
        self._blob_service = blob_service
        self._file_repository = file_repository

    async def upload(self, session_id: str, blob: FileBlob, is_recording: bool = False) -> SessionFile:
        storage_path = build_storage_path(session_id, blob.file_name)
        await self._blob_service.upload_bytes(
            storage_path,
            blob.data,
            blob.content_type,
            metadata={"session_id": session_id, "is_recording": str(is_recording).lower()},
        )
        stored = SessionFile(
            file_id=generate_id(),
            session_id=session_id,
            file_name=blob.file_name,
            file_type=blob.content_type,
            file_size=blob.size,
            storage_path=storage_path,
            is_recording=is_recording,
            created_at=get_current_timestamp(),
        )
        return await self._file_repository.create(stored, self._blob_service.container_name)

    async def list_files(self, session_id: str) -> List[SessionFile]:
        return await self._file_repository.list_by_session(session_id)

    async def get_file(self, file_id: str) -> Optional[SessionFile]:
        return await self._file_repository.get_by_id(file_id)

    async def delete(self, file_id: str, storage_path: str) -> bool:
        await self._blob_service.delete_file(storage_path)
        return await self._file_repository.delete(file_id)

    async def get_download_url(self, storage_path: str) -> str:
        return self._blob_service.generate_signed_url(storage_path)
