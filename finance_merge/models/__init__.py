"""
Data Models Package

This package contains all Pydantic models used by the reconciliation engine.
All merge results and audit records conform to these schemas.
"""

from finance_merge.models.merge import (
    AUTO_MERGED_OUTCOMES,
    COLLECTION_KEYS,
    CollectionMergeSummary,
    CollectionType,
    Conflict,
    ConflictReason,
    ConflictResolution,
    Document,
    Entity,
    EntityOutcome,
    MergeResult,
    ResolutionChoice,
)
from finance_merge.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Merge models
    "AUTO_MERGED_OUTCOMES",
    "COLLECTION_KEYS",
    "CollectionMergeSummary",
    "CollectionType",
    "Conflict",
    "ConflictReason",
    "ConflictResolution",
    "Document",
    "Entity",
    "EntityOutcome",
    "MergeResult",
    "ResolutionChoice",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
