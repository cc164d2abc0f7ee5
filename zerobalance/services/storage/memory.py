"""
In-Memory Audit Storage

Keeps audit events in a list. Used by tests, and by callers that want to
inspect the trail of a resolution without any external store.
"""

from uuid import UUID

from zerobalance.models.audit import AuditEvent
from zerobalance.services.storage.interface import AuditStorageInterface, StorageError


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in process memory."""

    def __init__(self, max_events: int = 10_000):
        if max_events < 1:
            raise StorageError("max_events must be at least 1")
        self._events: list[AuditEvent] = []
        self._max_events = max_events

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        # Oldest events go first once the cap is hit
        if len(self._events) > self._max_events:
            del self._events[: len(self._events) - self._max_events]
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events[-limit:])) if limit > 0 else []
