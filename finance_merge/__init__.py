"""
Finance Merge - Source Package

Three-way reconciliation of a personal finance document (accounts,
categories, transaction types, transactions, budgets, manual assets)
edited both in memory and on disk.

DESIGN PRINCIPLES:
1. Auto-merge only what is unambiguous
2. Conflicts are held back, never guessed
3. Fail early, fail visibly on malformed input
4. The engine is pure - callers own persistence
5. Every reconciliation is auditable
"""

from finance_merge.audit import AuditLogger, create_correlation_id
from finance_merge.models.merge import (
    CollectionType,
    Conflict,
    ConflictReason,
    ConflictResolution,
    MergeResult,
    ResolutionChoice,
)
from finance_merge.reconciliation import apply_resolutions, perform_three_way_merge

__version__ = "1.0.0"
__author__ = "Finance Merge Team"

__all__ = [
    "AuditLogger",
    "CollectionType",
    "Conflict",
    "ConflictReason",
    "ConflictResolution",
    "MergeResult",
    "ResolutionChoice",
    "apply_resolutions",
    "create_correlation_id",
    "perform_three_way_merge",
]
