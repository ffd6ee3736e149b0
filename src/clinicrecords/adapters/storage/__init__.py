"""
Storage adapters.

Azure Blob Storage holds session file bytes; their metadata lives in MongoDB.
"""

from .azure_blob_service import AzureBlobStorageService, get_azure_blob_service
from .session_file_storage import BlobSessionFileStorage, build_storage_path

__all__ = [
    "get_azure_blob_service",
    "AzureBlobStorageService",
    "BlobSessionFileStorage",
    "build_storage_path",
]
