"""
Audit Logger

DESIGN DECISION: Every reconciliation is logged.
This provides:
1. Traceability of auto-merged changes
2. Debugging capability when a merge looks wrong to the user
3. A history of conflict resolutions

The audit logger:
- Is async to not block the host application's event loop
- Gracefully handles storage failures (never crashes a merge)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_merge.models.audit import AuditEvent, AuditEventBuilder
from finance_merge.models.merge import Conflict, ResolutionChoice
from finance_merge.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        include_conflict_details: bool = True,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
            include_conflict_details: Attach conflict ids and reasons
                    to conflict events.
        """
        self._storage = storage
        self._include_conflict_details = include_conflict_details
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is not None:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_merge_started(self, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.merge_started(correlation_id))

    async def log_merge_completed(
        self,
        auto_merged_count: int,
        conflict_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log merge completion with its tallies."""
        event = AuditEventBuilder.merge_completed(
            auto_merged_count=auto_merged_count,
            conflict_count=conflict_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_conflict_detected(
        self,
        conflict: Conflict,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.conflict_detected(
            conflict=conflict,
            correlation_id=correlation_id,
            include_details=self._include_conflict_details,
        )
        await self.log(event)

    async def log_conflicts_resolved(
        self,
        choices: dict[ResolutionChoice, int],
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.conflicts_resolved(
            choices=choices,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_contract_violation(
        self,
        error_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a caller bug that aborted a merge."""
        event = AuditEventBuilder.contract_violation(
            error_type=error_type,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a reconciliation and pass it through
    the resolution step.
    """
    return uuid4()
