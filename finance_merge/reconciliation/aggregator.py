"""
Conflict Aggregator

Collects the per-collection conflicts into one flat list, stamping each
with its collection type, year partition and display name.
"""

from typing import Optional

from finance_merge.models.merge import CollectionType, Conflict, Entity
from finance_merge.reconciliation.diff_engine import EntityConflict


def entity_display_name(
    collection_type: CollectionType,
    *versions: Optional[Entity],
) -> str:
    """
    Pick a display name from the first version carrying one.

    Looks at `name`, then `description`.
    """
    for version in versions:
        if version is None:
            continue
        for field_name in ("name", "description"):
            value = version.get(field_name)
            if isinstance(value, str):
                return value
    return f"{collection_type.value} (no name)"


class ConflictAggregator:
    """
    Accumulates tagged conflicts in the order collections are added.

    Callers add collections in CollectionType order, so the resulting list
    is ordered by collection type and then by id encounter order.
    """

    def __init__(self):
        self._conflicts: list[Conflict] = []

    def add(
        self,
        collection_type: CollectionType,
        conflicts: list[EntityConflict],
        year: Optional[str] = None,
    ) -> None:
        for conflict in conflicts:
            self._conflicts.append(Conflict(
                collection_type=collection_type,
                entity_id=conflict.entity_id,
                conflict_reason=conflict.reason,
                external_version=conflict.external_version,
                local_version=conflict.local_version,
                entity_name=entity_display_name(
                    collection_type,
                    conflict.local_version,
                    conflict.external_version,
                ),
                year=year,
            ))

    @property
    def conflicts(self) -> list[Conflict]:
        return list(self._conflicts)
