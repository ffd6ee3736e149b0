"""
File storage service interface for session attachments and recordings.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from clinicrecords.domain.entities.session_file import SessionFile
from clinicrecords.domain.value_objects.file_blob import FileBlob


class FileStorageService(ABC):
    """Stores file bytes and their metadata."""

    @abstractmethod
    async def upload(self, session_id: str, blob: FileBlob, is_recording: bool = False) -> SessionFile:
        pass

    @abstractmethod
    async def list_files(self, session_id: str) -> List[SessionFile]:
        """Files of a session, newest first."""
        pass

    @abstractmethod
    async def get_file(self, file_id: str) -> Optional[SessionFile]:
        pass

    @abstractmethod
    async def delete(self, file_id: str, storage_path: str) -> bool:
        pass

    @abstractmethod
    async def get_download_url(self, storage_path: str) -> str:
        """Time-limited read URL for a stored file."""
        pass
