"""
In-Memory Audit Storage

Keeps audit events in a process-local list. Used by tests and by hosts
that only want the structured log plus a short in-session history.
"""

from typing import Optional
from uuid import UUID

from finance_merge.models.audit import AuditEvent
from finance_merge.services.storage.interface import AuditStorageInterface, StorageError


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in memory."""

    def __init__(self, max_events: Optional[int] = None):
        """
        Args:
            max_events: Refuse appends beyond this many events.
                        None means unbounded.
        """
        self._events: list[AuditEvent] = []
        self._max_events = max_events

    async def append_event(self, event: AuditEvent) -> bool:
        if self._max_events is not None and len(self._events) >= self._max_events:
            raise StorageError(f"Audit log is full ({self._max_events} events)")
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

    def __len__(self) -> int:
        return len(self._events)
