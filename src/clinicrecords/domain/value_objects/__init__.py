"""
Value objects package for domain layer.
"""

from .file_blob import AudioBlob, FileBlob

__all__ = [
    "FileBlob",
    "AudioBlob",
]
