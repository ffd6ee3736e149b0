"""
Finished file handed to the core by the capture or upload layer.
"""

from dataclasses import dataclass

from ..errors import ValidationError


@dataclass(frozen=True)
class FileBlob:
    """Immutable file payload: raw bytes plus the metadata storage needs."""

    data: bytes
    content_type: str
    file_name: str

    def __post_init__(self) -> None:
        if not self.data:
            raise ValidationError("data", "File is empty")
        if not self.file_name or not self.file_name.strip():
            raise ValidationError("file_name", "File name is required", self.file_name)
        if not self.content_type:
            raise ValidationError("content_type", "Content type is required", self.content_type)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_audio(self) -> bool:
        return self.content_type.startswith("audio/")


# Recordings arrive as ordinary file blobs with an audio/* content type.
AudioBlob = FileBlob
