"""
String utility functions.
"""

import uuid
from typing import Optional


def generate_id(prefix: str = "") -> str:
    """Generate a unique ID with optional prefix."""
    unique_id = str(uuid.uuid4())
    return f"{prefix}{unique_id}" if prefix else unique_id


def is_blank(text: Optional[str]) -> bool:
    """True for None, empty or whitespace-only strings."""
    return not (text or "").strip()


def clean_text(text: Optional[str]) -> Optional[str]:
    """Strip surrounding whitespace; blank strings become None."""
    if is_blank(text):
        return None
    return text.strip()


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate string to maximum length with suffix."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(suffix)] + suffix
