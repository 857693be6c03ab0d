"""
Reconciliation Models for Finance Merge

These models describe the outcome of reconciling two divergent copies of
the persisted finance document against their common ancestor.

DESIGN DECISION: Entities are opaque JSON mappings here.
The merge engine never interprets what an account or a transaction is;
it only needs an `id` and structural equality. Schema validation of the
entities themselves happens upstream, before a document reaches the engine.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


Entity = dict[str, Any]
Document = dict[str, Any]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class CollectionType(str, Enum):
    """
    Entity collections found in a finance document.

    Declaration order is the fixed processing order. Conflicts are
    reported in this order.
    """
    ACCOUNT = "account"
    CATEGORY = "category"
    TRANSACTION_TYPE = "transactionType"
    TRANSACTION = "transaction"
    BUDGET = "budget"
    MANUAL_ASSET = "manualAsset"

    @property
    def document_key(self) -> str:
        """Key under which this collection is stored in a document."""
        return _DOCUMENT_KEYS[self]

    @classmethod
    def from_document_key(cls, key: str) -> "CollectionType":
        for collection_type, document_key in _DOCUMENT_KEYS.items():
            if document_key == key:
                return collection_type
        raise ValueError(f"Unknown collection key: {key}")


_DOCUMENT_KEYS = {
    CollectionType.ACCOUNT: "accounts",
    CollectionType.CATEGORY: "categories",
    CollectionType.TRANSACTION_TYPE: "transactionTypes",
    CollectionType.TRANSACTION: "transactions",
    CollectionType.BUDGET: "budgets",
    CollectionType.MANUAL_ASSET: "manualAssets",
}

COLLECTION_KEYS = frozenset(_DOCUMENT_KEYS.values())


class ConflictReason(str, Enum):
    """Why an entity could not be merged automatically."""
    BOTH_MODIFIED = "both-modified"  # Changed (or added) differently on both sides
    DELETE_MODIFY = "delete-modify"  # Deleted on one side, modified on the other


class EntityOutcome(str, Enum):
    """What the diff decided for a single entity id."""
    UNCHANGED = "unchanged"
    TAKE_EXTERNAL = "take-external"
    TAKE_LOCAL = "take-local"
    AGREED = "agreed"      # Same change (or same addition) on both sides
    DELETED = "deleted"    # Deletion accepted
    CONFLICT = "conflict"


AUTO_MERGED_OUTCOMES = frozenset({
    EntityOutcome.TAKE_EXTERNAL,
    EntityOutcome.TAKE_LOCAL,
    EntityOutcome.AGREED,
    EntityOutcome.DELETED,
})


class ResolutionChoice(str, Enum):
    """Which version the user picked for a conflict."""
    EXTERNAL = "external"
    LOCAL = "local"
    MANUAL = "manual"  # User supplied an edited entity


# =============================================================================
# MERGE RESULT MODELS
# =============================================================================

class Conflict(BaseModel):
    """
    An entity whose fate could not be decided automatically.

    CRITICAL: A conflicted entity is held back from the merged document.
    It only comes back once the user picks a version.
    """
    model_config = ConfigDict(frozen=True)

    collection_type: CollectionType = Field(
        ...,
        description="Collection the entity belongs to"
    )
    entity_id: str = Field(
        ...,
        description="The entity's id within its collection"
    )
    conflict_reason: ConflictReason
    external_version: Optional[Entity] = Field(
        default=None,
        description="Entity as found in the external snapshot (None if deleted there)"
    )
    local_version: Optional[Entity] = Field(
        default=None,
        description="Entity as held in memory (None if deleted locally)"
    )
    entity_name: str = Field(
        ...,
        description="Display name for the resolution UI"
    )
    year: Optional[str] = Field(
        default=None,
        description="Year partition for year-scoped collections, None for top level"
    )

    @property
    def key(self) -> tuple[CollectionType, Optional[str], str]:
        """Identity of the conflict within a merge result."""
        return (self.collection_type, self.year, self.entity_id)

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.

        Entity contents are left out; they may hold personal data.
        """
        return {
            "collection_type": self.collection_type.value,
            "entity_id": self.entity_id,
            "conflict_reason": self.conflict_reason.value,
            "year": self.year,
            "external_deleted": self.external_version is None,
            "local_deleted": self.local_version is None,
        }


class CollectionMergeSummary(BaseModel):
    """Per-collection tally of diff outcomes."""

    collection_type: CollectionType
    year: Optional[str] = None
    outcomes: dict[EntityOutcome, int] = Field(default_factory=dict)

    def count(self, outcome: EntityOutcome) -> int:
        return self.outcomes.get(outcome, 0)

    @property
    def auto_merged_count(self) -> int:
        return sum(self.count(outcome) for outcome in AUTO_MERGED_OUTCOMES)

    @property
    def conflict_count(self) -> int:
        return self.count(EntityOutcome.CONFLICT)


class MergeResult(BaseModel):
    """
    Result of a three-way merge.

    `merged` holds every auto-resolved entity. `conflicts` holds the rest,
    in collection-type order and then id encounter order.
    """

    merged: Document
    conflicts: list[Conflict] = Field(default_factory=list)
    summaries: list[CollectionMergeSummary] = Field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicts) > 0

    @property
    def conflict_count(self) -> int:
        return len(self.conflicts)

    @property
    def auto_merged_count(self) -> int:
        """Number of changes applied without asking the user."""
        return sum(summary.auto_merged_count for summary in self.summaries)

    def conflicts_for(
        self,
        collection_type: CollectionType,
        year: Optional[str] = None,
    ) -> list[Conflict]:
        """Conflicts of one collection (and year partition)."""
        return [
            c for c in self.conflicts
            if c.collection_type == collection_type and c.year == year
        ]


class ConflictResolution(BaseModel):
    """
    A user's decision for one conflict.

    For MANUAL choices the edited entity must be supplied and keep the
    conflict's id.
    """

    collection_type: CollectionType
    entity_id: str
    year: Optional[str] = None
    choice: ResolutionChoice
    manual_version: Optional[Entity] = None

    @model_validator(mode='after')
    def validate_manual_version(self) -> 'ConflictResolution':
        if self.choice == ResolutionChoice.MANUAL:
            if self.manual_version is None:
                raise ValueError("Manual resolution requires an edited entity")
            if self.manual_version.get("id") != self.entity_id:
                raise ValueError("Manual entity must keep the conflict's id")
        elif self.manual_version is not None:
            raise ValueError("Edited entity is only allowed for manual resolutions")
        return self

    @property
    def key(self) -> tuple[CollectionType, Optional[str], str]:
        return (self.collection_type, self.year, self.entity_id)
