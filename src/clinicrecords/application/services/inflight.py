"""In-flight tracking for long-running operations.

A summary, insights, evolution, transcription or plan-generation request is
registered under (entity id, operation kind) while it runs. A second request
for the same pair is rejected instead of racing the first one.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Set, Tuple

from ...domain.enums.statuses import OperationKind
from ...domain.errors import OperationInProgressError

logger = logging.getLogger(__name__)


class InFlightRegistry:
    """Per-process registry of running operations (single event loop)."""

    def __init__(self) -> None:
        self._running: Set[Tuple[str, OperationKind]] = set()

    def is_in_flight(self, entity_id: str, kind: OperationKind) -> bool:
        return (entity_id, OperationKind(kind)) in self._running

    @asynccontextmanager
    async def track(self, entity_id: str, kind: OperationKind) -> AsyncIterator[None]:
        key = (entity_id, OperationKind(kind))
        if key in self._running:
            logger.warning(f"Rejected duplicate {key[1].value} request for {entity_id}")
            raise OperationInProgressError(entity_id, key[1].value)
        self._running.add(key)
        try:
            yield
        finally:
            self._running.discard(key)
