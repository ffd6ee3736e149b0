"""Metadata of a file attached to a clinical session."""

from dataclasses import dataclass, field
from datetime import datetime

from ...core.utils.datetime_utils import get_current_timestamp


@dataclass
class SessionFile:
    """A stored file; the bytes live in the storage collaborator."""

    file_id: str
    session_id: str
    file_name: str
    file_type: str
    file_size: int
    storage_path: str
    is_recording: bool = False
    created_at: datetime = field(default_factory=get_current_timestamp)
