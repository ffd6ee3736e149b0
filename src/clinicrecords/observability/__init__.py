"""
Observability module for tracing and audit logging.

Provides:
- Custom tracing spans for AI and storage calls
- Structured audit events for clinical record changes
"""

from .audit import audit_log_event
from .tracing import (
    add_span_attribute,
    set_span_status,
    trace_operation,
)

__all__ = [
    # Tracing
    "trace_operation",
    "set_span_status",
    "add_span_attribute",
    # Audit
    "audit_log_event",
]
