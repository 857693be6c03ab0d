"""
Reconciliation Package

Three-way merge of the finance document: structural comparison,
per-collection diff, conflict aggregation and resolution.
"""

from finance_merge.reconciliation.aggregator import ConflictAggregator, entity_display_name
from finance_merge.reconciliation.comparator import MISSING, entities_equal, values_equal
from finance_merge.reconciliation.coordinator import MergeCoordinator, perform_three_way_merge
from finance_merge.reconciliation.diff_engine import (
    CollectionDiff,
    CollectionDiffEngine,
    EntityConflict,
)
from finance_merge.reconciliation.errors import (
    CollectionMismatchError,
    DuplicateEntityIdError,
    MergeContractError,
    MissingEntityIdError,
    ResolutionError,
)
from finance_merge.reconciliation.resolution import (
    apply_plan,
    apply_resolutions,
    plan_resolutions,
)

__all__ = [
    # Engine
    "CollectionDiff",
    "CollectionDiffEngine",
    "ConflictAggregator",
    "EntityConflict",
    "MergeCoordinator",
    "MISSING",
    "apply_plan",
    "apply_resolutions",
    "entities_equal",
    "entity_display_name",
    "perform_three_way_merge",
    "plan_resolutions",
    "values_equal",
    # Exceptions
    "CollectionMismatchError",
    "DuplicateEntityIdError",
    "MergeContractError",
    "MissingEntityIdError",
    "ResolutionError",
]
