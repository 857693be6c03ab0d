"""
Audit Models for Finance Merge

Every reconciliation run is logged for audit purposes.
This provides:
1. Traceability of which changes were applied automatically
2. Debugging information when a merge surprises the user
3. A record of how each conflict was resolved

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finance_merge.models.merge import Conflict, ResolutionChoice


class AuditEventType(str, Enum):
    """Types of events we audit."""
    MERGE_STARTED = "merge_started"
    MERGE_COMPLETED = "merge_completed"
    CONFLICT_DETECTED = "conflict_detected"
    CONFLICTS_RESOLVED = "conflicts_resolved"
    CONTRACT_VIOLATION = "contract_violation"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant step of a reconciliation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Collection type of the entity (e.g., 'account', 'transaction')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - all events of one reconciliation share this
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.merge_started(correlation_id)
        event = AuditEventBuilder.conflict_detected(conflict, correlation_id)
    """

    @staticmethod
    def merge_started(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MERGE_STARTED,
            correlation_id=correlation_id,
            description="Three-way merge started",
        )

    @staticmethod
    def merge_completed(
        auto_merged_count: int,
        conflict_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MERGE_COMPLETED,
            severity=AuditSeverity.WARNING if conflict_count else AuditSeverity.INFO,
            correlation_id=correlation_id,
            description=(
                f"Merge completed: {auto_merged_count} changes auto-merged, "
                f"{conflict_count} conflicts"
            ),
            details={
                "auto_merged_count": auto_merged_count,
                "conflict_count": conflict_count,
            },
        )

    @staticmethod
    def conflict_detected(
        conflict: Conflict,
        correlation_id: UUID,
        include_details: bool = True,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONFLICT_DETECTED,
            severity=AuditSeverity.WARNING,
            entity_type=conflict.collection_type.value,
            entity_id=conflict.entity_id,
            correlation_id=correlation_id,
            description=(
                f"Conflict on {conflict.collection_type.value} "
                f"{conflict.entity_id}: {conflict.conflict_reason.value}"
            ),
            details=conflict.to_log_dict() if include_details else {},
        )

    @staticmethod
    def conflicts_resolved(
        choices: dict[ResolutionChoice, int],
        correlation_id: UUID,
    ) -> AuditEvent:
        total = sum(choices.values())
        return AuditEvent(
            event_type=AuditEventType.CONFLICTS_RESOLVED,
            correlation_id=correlation_id,
            description=f"{total} conflicts resolved",
            details={choice.value: count for choice, count in choices.items()},
            is_user_action=True,
        )

    @staticmethod
    def contract_violation(
        error_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONTRACT_VIOLATION,
            severity=AuditSeverity.CRITICAL,
            correlation_id=correlation_id,
            description=f"Merge contract violation: {error_type}",
            error_code=error_type,
            error_message=error_message,
        )
