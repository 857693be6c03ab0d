"""
Merge Coordinator

Top-level entry point of the reconciliation engine. Runs the collection
diff once per collection kind in a fixed order, assembles the merged
document and gathers the conflicts.

A document is a set of named entity collections. Collections may sit at
the top level, inside a per-year map, or both:

    {
        "version": "1.0.0",
        "accounts": [...],
        "categories": [...],
        "transactionTypes": [...],
        "years": {"2025": {"transactions": [...], "budgets": [...], "manualAssets": [...]}},
        "archivedYears": [...],
        "lastModified": "..."
    }

GUARANTEES:
- Pure: inputs are never mutated, output depends only on inputs
- Every id is either in `merged` or reported exactly once as a conflict
- Layout mismatches raise instead of silently dropping collections
"""

import copy
from typing import Any, Optional

import structlog

from finance_merge.models.merge import (
    COLLECTION_KEYS,
    CollectionMergeSummary,
    CollectionType,
    Document,
    MergeResult,
)
from finance_merge.reconciliation.aggregator import ConflictAggregator
from finance_merge.reconciliation.comparator import values_equal
from finance_merge.reconciliation.diff_engine import CollectionDiffEngine
from finance_merge.reconciliation.errors import CollectionMismatchError


logger = structlog.get_logger(__name__)

DEFAULT_YEAR_MAP_KEY = "years"

SNAPSHOT_NAMES = ("base", "external", "local")


def collection_keys(container: dict[str, Any], label: str) -> frozenset[str]:
    """
    Collection keys present in a document (or year partition).

    Raises:
        CollectionMismatchError: A collection value is not a list
    """
    keys = frozenset(key for key in container if key in COLLECTION_KEYS)
    for key in keys:
        if not isinstance(container[key], list):
            raise CollectionMismatchError(
                f"Collection '{key}' in {label} must be a list, "
                f"got {type(container[key]).__name__}"
            )
    return keys


class MergeCoordinator:
    """
    Runs a three-way merge over whole documents.

    Usage:
        coordinator = MergeCoordinator()
        result = coordinator.merge(base, external, local)
    """

    def __init__(
        self,
        diff_engine: Optional[CollectionDiffEngine] = None,
        year_map_key: str = DEFAULT_YEAR_MAP_KEY,
    ):
        self._diff_engine = diff_engine or CollectionDiffEngine()
        self._year_map_key = year_map_key

    def merge(
        self,
        base: Document,
        external: Document,
        local: Document,
    ) -> MergeResult:
        """
        Merge the externally modified and locally modified documents.

        Args:
            base: Last document both sides agreed on
            external: Document as found outside the application (e.g. on disk)
            local: Document as currently held in memory

        Returns:
            MergeResult with the merged document and ordered conflicts

        Raises:
            CollectionMismatchError: The snapshots differ in layout
            DuplicateEntityIdError: An id repeats within one collection
            MissingEntityIdError: An entity has no string id
        """
        snapshots = (base, external, local)
        top_keys = self._check_top_level(snapshots)
        years = self._year_partitions(snapshots)
        year_keys = {
            year: self._check_year(year, partitions)
            for year, partitions in (years or {}).items()
        }

        merged = self._document_skeleton(local)
        merged_years = self._year_skeletons(years) if years is not None else None
        if merged_years is not None:
            merged[self._year_map_key] = merged_years

        aggregator = ConflictAggregator()
        summaries: list[CollectionMergeSummary] = []

        for collection_type in CollectionType:
            key = collection_type.document_key

            if key in top_keys:
                diff = self._diff_engine.diff(
                    base[key], external[key], local[key], collection=key
                )
                merged[key] = diff.resolved
                aggregator.add(collection_type, diff.conflicts)
                summaries.append(CollectionMergeSummary(
                    collection_type=collection_type,
                    outcomes=diff.outcome_counts(),
                ))

            for year in sorted(year_keys):
                if key not in year_keys[year]:
                    continue
                base_y, external_y, local_y = (
                    (partition or {}).get(key, []) for partition in years[year]
                )
                diff = self._diff_engine.diff(
                    base_y, external_y, local_y, collection=f"{key}[{year}]"
                )
                if year in merged_years:
                    merged_years[year][key] = diff.resolved
                aggregator.add(collection_type, diff.conflicts, year=year)
                summaries.append(CollectionMergeSummary(
                    collection_type=collection_type,
                    year=year,
                    outcomes=diff.outcome_counts(),
                ))

        result = MergeResult(
            merged=merged,
            conflicts=aggregator.conflicts,
            summaries=summaries,
        )
        logger.debug(
            "documents_merged",
            collections=len(summaries),
            auto_merged=result.auto_merged_count,
            conflicts=result.conflict_count,
        )
        return result

    # -------------------------------------------------------------------------
    # Layout checks
    # -------------------------------------------------------------------------

    def _check_top_level(self, snapshots: tuple[Document, ...]) -> frozenset[str]:
        layouts = [
            collection_keys(doc, name) for doc, name in zip(snapshots, SNAPSHOT_NAMES)
        ]
        if len(set(layouts)) != 1:
            raise CollectionMismatchError(
                "Snapshots do not share the same collections: "
                + ", ".join(
                    f"{name}={sorted(keys)}" for name, keys in zip(SNAPSHOT_NAMES, layouts)
                )
            )

        has_years = [self._year_map_key in doc for doc in snapshots]
        if len(set(has_years)) != 1:
            raise CollectionMismatchError(
                f"'{self._year_map_key}' must be present in all snapshots or none: "
                + ", ".join(
                    f"{name}={present}" for name, present in zip(SNAPSHOT_NAMES, has_years)
                )
            )
        return layouts[0]

    def _year_partitions(
        self,
        snapshots: tuple[Document, ...],
    ) -> Optional[dict[str, tuple[Optional[dict], ...]]]:
        """Map each year to its (base, external, local) partitions, None if absent."""
        if self._year_map_key not in snapshots[0]:
            return None

        year_maps = []
        for doc, name in zip(snapshots, SNAPSHOT_NAMES):
            year_map = doc[self._year_map_key]
            if not isinstance(year_map, dict):
                raise CollectionMismatchError(
                    f"'{self._year_map_key}' in {name} must be a mapping"
                )
            for year, partition in year_map.items():
                if not isinstance(partition, dict):
                    raise CollectionMismatchError(
                        f"Year '{year}' in {name} must be a mapping"
                    )
            year_maps.append(year_map)

        all_years = dict.fromkeys(year for year_map in year_maps for year in year_map)
        return {
            year: tuple(year_map.get(year) for year_map in year_maps)
            for year in all_years
        }

    def _check_year(self, year: str, partitions: tuple[Optional[dict], ...]) -> frozenset[str]:
        layouts = {
            name: collection_keys(partition, f"{name} year '{year}'")
            for partition, name in zip(partitions, SNAPSHOT_NAMES)
            if partition is not None
        }
        if len(set(layouts.values())) != 1:
            raise CollectionMismatchError(
                f"Year '{year}' does not share the same collections: "
                + ", ".join(f"{name}={sorted(keys)}" for name, keys in layouts.items())
            )
        return next(iter(layouts.values()))

    # -------------------------------------------------------------------------
    # Output assembly
    # -------------------------------------------------------------------------

    def _document_skeleton(self, local: Document) -> Document:
        """Local metadata with empty collection slots, in local key order."""
        skeleton: Document = {}
        for key, value in local.items():
            if key in COLLECTION_KEYS:
                skeleton[key] = []
            elif key == self._year_map_key:
                skeleton[key] = {}
            else:
                skeleton[key] = copy.deepcopy(value)
        return skeleton

    @staticmethod
    def _year_skeletons(
        years: dict[str, tuple[Optional[dict], ...]],
    ) -> dict[str, dict[str, Any]]:
        """
        Skeletons for years kept in the merged document.

        A year survives if the external or local snapshot still has it,
        unless one side removed it and the other left it equal to base.
        Metadata comes from local, then external, then base.
        """
        skeletons: dict[str, dict[str, Any]] = {}
        for year in sorted(years):
            base_y, external_y, local_y = years[year]
            if external_y is None and local_y is None:
                continue
            if base_y is not None and (external_y is None or local_y is None):
                kept = local_y if external_y is None else external_y
                if values_equal(kept, base_y):
                    # Removed on one side, untouched on the other
                    continue
            source = next(p for p in (local_y, external_y, base_y) if p is not None)
            skeletons[year] = {
                key: [] if key in COLLECTION_KEYS else copy.deepcopy(value)
                for key, value in source.items()
            }
        return skeletons


def perform_three_way_merge(
    base: Document,
    external: Document,
    local: Document,
    year_map_key: str = DEFAULT_YEAR_MAP_KEY,
) -> MergeResult:
    """
    Perform a three-way merge of finance documents.

    Args:
        base: Common ancestor snapshot
        external: Externally modified snapshot
        local: Locally modified (in-memory) snapshot
        year_map_key: Document key holding per-year collections

    Returns:
        MergeResult with the auto-merged document and the conflicts
        that need a user decision
    """
    return MergeCoordinator(year_map_key=year_map_key).merge(base, external, local)
