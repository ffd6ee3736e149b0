"""
Azure Blob Storage service for session files.
Handles upload, deletion and signed read URLs of blobs in one container.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import (
    BlobSasPermissions,
    BlobServiceClient,
    ContentSettings,
    generate_blob_sas,
)

from ...core.config import AzureBlobSettings, get_settings
from ...core.exceptions import ConfigurationError, StorageError
from ...observability.tracing import set_span_status, trace_operation

logger = logging.getLogger(__name__)


async def run_blocking(func, *args, **kwargs):
    """
    Run a blocking function in an executor to avoid blocking the event loop.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: func(*args, **kwargs))


def parse_connection_string(connection_string: str) -> Dict[str, str]:
    """Split ``Key=Value;...`` into a dict (values may contain '=')."""
    parts: Dict[str, str] = {}
    for part in connection_string.split(";"):
        if "=" in part:
            key, value = part.split("=", 1)
            parts[key] = value
    return parts


class AzureBlobStorageService:
    """Azure Blob Storage service for file operations."""

    def __init__(self, settings: Optional[AzureBlobSettings] = None):
        self.settings = settings or get_settings().azure_blob
        self._client: Optional[BlobServiceClient] = None
        self._container_client = None
        self._connection_timeout = 30
        self._read_timeout = 300

    @property
    def container_name(self) -> str:
        return self.settings.container_name

    @property
    def client(self) -> BlobServiceClient:
        """Get or create BlobServiceClient with connection timeouts."""
        if self._client is None:
            if not self.settings.connection_string:
                raise ConfigurationError("Azure Blob Storage connection string is required")
            self._client = BlobServiceClient.from_connection_string(
                self.settings.connection_string,
                connection_timeout=self._connection_timeout,
                read_timeout=self._read_timeout,
            )
            logger.info(f"Azure Blob Storage client initialized for container: {self.container_name}")
        return self._client

    @property
    def container_client(self):
        if self._container_client is None:
            self._container_client = self.client.get_container_client(self.container_name)
        return self._container_client

    async def ensure_container_exists(self) -> bool:
        """Ensure the blob container exists (non-blocking)."""
        try:
            await run_blocking(self.container_client.create_container)
            logger.info(f"Created blob container: {self.container_name}")
        except ResourceExistsError:
            logger.info(f"Blob container already exists: {self.container_name}")
        except AzureError as e:
            raise StorageError(f"Failed to create blob container: {e}", {"container": self.container_name})
        return True

    async def upload_bytes(self, blob_path: str, data: bytes, content_type: str, metadata: Dict[str, str]) -> str:
        """Upload bytes to ``blob_path``; returns the blob URL (without SAS)."""
        start_time = time.time()
        blob_client = self.client.get_blob_client(container=self.container_name, blob=blob_path)
        with trace_operation("blob_upload", {"blob_path": blob_path, "bytes": len(data)}) as span:
            try:
                await run_blocking(
                    blob_client.upload_blob,
                    data,
                    content_settings=ContentSettings(content_type=content_type),
                    metadata=metadata,
                    overwrite=True,
                )
            except AzureError as e:
                set_span_status(span, success=False, error_message=str(e))
                logger.error(f"Failed to upload {blob_path}: {e}")
                raise StorageError(f"Upload failed: {e}", {"blob_path": blob_path})
            set_span_status(span, success=True)

        logger.info(
            f"Uploaded file to blob storage: {blob_path}, "
            f"size={len(data)} bytes, duration={time.time() - start_time:.2f}s"
        )
        return blob_client.url

    async def delete_file(self, blob_path: str) -> bool:
        """Delete a blob; False when it was already gone."""
        blob_client = self.client.get_blob_client(container=self.container_name, blob=blob_path)
        try:
            await run_blocking(blob_client.delete_blob)
        except ResourceNotFoundError:
            logger.warning(f"File not found for deletion: {blob_path}")
            return False
        except AzureError as e:
            logger.error(f"Failed to delete file from blob storage: {e}")
            raise StorageError(f"Delete failed: {e}", {"blob_path": blob_path})
        logger.info(f"Deleted file from blob storage: {blob_path}")
        return True

    def generate_signed_url(self, blob_path: str, expires_in_seconds: Optional[int] = None) -> str:
        """
        Generate a read-only signed URL for a blob.

        Account name/key come from settings or, failing that, from the
        connection string; a connection string carrying a SAS is used as is.
        """
        if expires_in_seconds is None:
            expires_in_seconds = self.settings.url_expiry_seconds

        account_name = self.settings.account_name
        account_key = self.settings.account_key
        shared_access_signature = None
        if self.settings.connection_string:
            parts = parse_connection_string(self.settings.connection_string)
            account_key = account_key or parts.get("AccountKey", "")
            account_name = account_name or parts.get("AccountName", "")
            if parts.get("SharedAccessSignature"):
                shared_access_signature = parts["SharedAccessSignature"].lstrip("?")

        if not account_name:
            raise ConfigurationError(
                "Azure Blob Storage account_name is required for generating signed URLs. "
                "Set AZURE_BLOB_ACCOUNT_NAME or include AccountName in AZURE_BLOB_CONNECTION_STRING."
            )

        blob_url = f"https://{account_name}.blob.core.windows.net/{self.container_name}/{blob_path}"
        if not account_key:
            if shared_access_signature:
                return f"{blob_url}?{shared_access_signature}"
            raise ConfigurationError(
                "Azure Blob Storage account_key is required for generating signed URLs. "
                "Set AZURE_BLOB_ACCOUNT_KEY or include AccountKey in AZURE_BLOB_CONNECTION_STRING."
            )

        sas_token = generate_blob_sas(
            account_name=account_name,
            container_name=self.container_name,
            blob_name=blob_path,
            account_key=account_key,
            permission=BlobSasPermissions(read=True),
            expiry=datetime.now(timezone.utc) + timedelta(seconds=expires_in_seconds),
        )
        return f"{blob_url}?{sas_token}"


# Factory function
def get_azure_blob_service() -> AzureBlobStorageService:
    """Get Azure Blob Storage service instance."""
    return AzureBlobStorageService()
