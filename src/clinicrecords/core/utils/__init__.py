"""
Utility functions shared across layers.
"""

from .datetime_utils import (
    ensure_utc,
    get_current_date,
    get_current_timestamp,
    month_key,
)
from .string_utils import (
    clean_text,
    generate_id,
    is_blank,
    truncate_string,
)

__all__ = [
    # Datetime utilities
    "get_current_timestamp",
    "get_current_date",
    "ensure_utc",
    "month_key",
    # String utilities
    "generate_id",
    "is_blank",
    "clean_text",
    "truncate_string",
]
