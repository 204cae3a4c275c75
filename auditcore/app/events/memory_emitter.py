from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, List, Optional

from auditcore.app.events.models import AuditEvent, AuditEventType
from auditcore.app.events.emitter import AuditEventEmitter

logger = logging.getLogger(__name__)


_TERMINAL_EVENTS = {
    AuditEventType.AUDIT_COMPLETED,
    AuditEventType.AUDIT_FAILED,
}


class MemoryQueueEventEmitter(AuditEventEmitter):
    """
    In-memory async event emitter suitable for SSE streaming.

    Properties:
    - single-consumer
    - non-blocking for the audit execution path
    - deterministic ordering
    - terminates cleanly on audit completion or failure
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Optional[AuditEvent]] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def emit(self, event: AuditEvent) -> None:
        if self._closed:
            return

        try:
            await self._queue.put(event)
        except Exception:
            # Observability never breaks the audit
            logger.debug("Dropped event %s", event.event_type.value)
            return

        if event.event_type in _TERMINAL_EVENTS:
            await self.close()

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            await self._queue.put(None)

    async def stream(self) -> AsyncIterator[AuditEvent]:
        """
        Async generator yielding emitted events in order.
        """
        while True:
            event = await self._queue.get()
            if event is None:
                break
            yield event


class RecordingEventEmitter:
    """
    Emitter that keeps every event in a list.

    Used by tests and by callers that inspect the event trail after
    a synchronous audit.
    """

    def __init__(self) -> None:
        self.events: List[AuditEvent] = []

    async def emit(self, event: AuditEvent) -> None:
        self.events.append(event)

    def types(self) -> List[AuditEventType]:
        return [event.event_type for event in self.events]
