"""
Collection Diff Engine

Generic three-way diff for one homogeneous collection of entities keyed
by `id`. Every collection kind goes through this single implementation.

For every id in the union of (base, external, local) exactly one outcome
is produced:

    base  external  local     outcome
    ----  --------  -----     -------
    -     E         -         take external
    -     -         L         take local
    -     E         L         agreed if E == L, else both-modified conflict
    B     E         L         unchanged / single-side change / agreed /
                              both-modified conflict
    B     -         L         deleted if L == B, else delete-modify conflict
    B     E         -         deleted if E == B, else delete-modify conflict
    B     -         -         deleted

When both sides made the same change, the external value is used.
"""

import copy
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Optional

import structlog

from finance_merge.models.merge import ConflictReason, Entity, EntityOutcome
from finance_merge.reconciliation.comparator import MISSING, entities_equal, is_missing
from finance_merge.reconciliation.errors import (
    DuplicateEntityIdError,
    MissingEntityIdError,
)


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class EntityConflict:
    """A conflict not yet tagged with its collection."""
    entity_id: str
    reason: ConflictReason
    external_version: Optional[Entity]
    local_version: Optional[Entity]


@dataclass
class CollectionDiff:
    """Outcome of diffing one collection."""
    resolved: list[Entity] = field(default_factory=list)
    conflicts: list[EntityConflict] = field(default_factory=list)
    outcomes: dict[str, EntityOutcome] = field(default_factory=dict)

    def outcome_counts(self) -> dict[EntityOutcome, int]:
        return dict(Counter(self.outcomes.values()))


def index_by_id(entities: list[Entity], collection: str) -> dict[str, Entity]:
    """
    Index a collection snapshot by entity id.

    Raises:
        MissingEntityIdError: An entity has no string id
        DuplicateEntityIdError: An id occurs twice
    """
    index: dict[str, Entity] = {}
    for entity in entities:
        entity_id = entity.get("id") if isinstance(entity, dict) else None
        if not isinstance(entity_id, str):
            raise MissingEntityIdError(
                f"Entity without a string id in {collection}: {entity!r:.80}"
            )
        if entity_id in index:
            raise DuplicateEntityIdError(collection, entity_id)
        index[entity_id] = entity
    return index


class CollectionDiffEngine:
    """
    Three-way diff over one collection.

    Stateless; one instance can be shared across collections and threads.
    """

    def diff(
        self,
        base: list[Entity],
        external: list[Entity],
        local: list[Entity],
        collection: str = "collection",
    ) -> CollectionDiff:
        """
        Diff one collection across the snapshot triple.

        Args:
            base: Entities in the common ancestor
            external: Entities in the externally modified copy
            local: Entities in the in-memory copy
            collection: Label used in error messages and logs

        Returns:
            Resolved entities and conflicts, in id encounter order
            (base first, then external, then local)
        """
        base_map = index_by_id(base, collection)
        external_map = index_by_id(external, collection)
        local_map = index_by_id(local, collection)

        # dict preserves first-seen order
        all_ids = dict.fromkeys([*base_map, *external_map, *local_map])

        result = CollectionDiff()
        for entity_id in all_ids:
            outcome, value, conflict = self._decide(
                entity_id,
                base_map.get(entity_id, MISSING),
                external_map.get(entity_id, MISSING),
                local_map.get(entity_id, MISSING),
            )
            result.outcomes[entity_id] = outcome
            if conflict is not None:
                result.conflicts.append(conflict)
            elif value is not MISSING:
                result.resolved.append(copy.deepcopy(value))

        logger.debug(
            "collection_diffed",
            collection=collection,
            resolved=len(result.resolved),
            conflicts=len(result.conflicts),
        )
        return result

    def _decide(
        self,
        entity_id: str,
        base_e: Any,
        ext_e: Any,
        loc_e: Any,
    ) -> tuple[EntityOutcome, Any, Optional[EntityConflict]]:
        """Return (outcome, resolved value or MISSING, conflict or None)."""
        if is_missing(base_e):
            return self._decide_added(entity_id, ext_e, loc_e)

        ext_changed = not entities_equal(base_e, ext_e)
        loc_changed = not entities_equal(base_e, loc_e)

        if is_missing(ext_e) and is_missing(loc_e):
            return EntityOutcome.DELETED, MISSING, None

        if is_missing(ext_e):
            # Deleted externally
            if not loc_changed:
                return EntityOutcome.DELETED, MISSING, None
            return EntityOutcome.CONFLICT, MISSING, EntityConflict(
                entity_id, ConflictReason.DELETE_MODIFY, None, copy.deepcopy(loc_e)
            )

        if is_missing(loc_e):
            # Deleted locally
            if not ext_changed:
                return EntityOutcome.DELETED, MISSING, None
            return EntityOutcome.CONFLICT, MISSING, EntityConflict(
                entity_id, ConflictReason.DELETE_MODIFY, copy.deepcopy(ext_e), None
            )

        if not ext_changed and not loc_changed:
            return EntityOutcome.UNCHANGED, base_e, None
        if ext_changed and not loc_changed:
            return EntityOutcome.TAKE_EXTERNAL, ext_e, None
        if loc_changed and not ext_changed:
            return EntityOutcome.TAKE_LOCAL, loc_e, None
        if entities_equal(ext_e, loc_e):
            return EntityOutcome.AGREED, ext_e, None
        return EntityOutcome.CONFLICT, MISSING, self._both_modified(entity_id, ext_e, loc_e)

    def _decide_added(
        self,
        entity_id: str,
        ext_e: Any,
        loc_e: Any,
    ) -> tuple[EntityOutcome, Any, Optional[EntityConflict]]:
        if is_missing(ext_e) and is_missing(loc_e):
            # Unreachable for ids taken from the snapshots
            return EntityOutcome.DELETED, MISSING, None
        if is_missing(loc_e):
            return EntityOutcome.TAKE_EXTERNAL, ext_e, None
        if is_missing(ext_e):
            return EntityOutcome.TAKE_LOCAL, loc_e, None
        if entities_equal(ext_e, loc_e):
            return EntityOutcome.AGREED, ext_e, None
        return EntityOutcome.CONFLICT, MISSING, self._both_modified(entity_id, ext_e, loc_e)

    @staticmethod
    def _both_modified(entity_id: str, ext_e: Entity, loc_e: Entity) -> EntityConflict:
        return EntityConflict(
            entity_id,
            ConflictReason.BOTH_MODIFIED,
            copy.deepcopy(ext_e),
            copy.deepcopy(loc_e),
        )
