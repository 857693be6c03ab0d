"""
Conflict Resolution

Folds the user's choices for each conflict back into the merged document.

IMPORTANT: Deciding is the user's job. This module only applies decisions;
anything the user did not decide falls back to an explicit default choice.
"""

import copy
from collections.abc import Iterable
from typing import Optional

from finance_merge.models.merge import (
    Conflict,
    ConflictResolution,
    Document,
    Entity,
    MergeResult,
    ResolutionChoice,
)
from finance_merge.reconciliation.coordinator import DEFAULT_YEAR_MAP_KEY
from finance_merge.reconciliation.errors import ResolutionError


def plan_resolutions(
    result: MergeResult,
    resolutions: Iterable[ConflictResolution] = (),
    default_choice: ResolutionChoice = ResolutionChoice.LOCAL,
) -> list[tuple[Conflict, ResolutionChoice, Optional[Entity]]]:
    """
    Pair every conflict with the choice made for it and the chosen version.

    A chosen version of None means the entity stays deleted.

    Raises:
        ResolutionError: Resolution for an unknown conflict, a repeated
            resolution, or a MANUAL default
    """
    if default_choice == ResolutionChoice.MANUAL:
        raise ResolutionError("A manual edit cannot be the default choice")

    by_key: dict[tuple, ConflictResolution] = {}
    for resolution in resolutions:
        if resolution.key in by_key:
            raise ResolutionError(
                f"Conflict {resolution.entity_id} in {resolution.collection_type.value} "
                "resolved more than once"
            )
        by_key[resolution.key] = resolution

    unknown = set(by_key) - {conflict.key for conflict in result.conflicts}
    if unknown:
        raise ResolutionError(
            "Resolutions do not match any conflict: "
            + ", ".join(sorted(f"{t.value}:{y or '-'}:{i}" for t, y, i in unknown))
        )

    plan = []
    for conflict in result.conflicts:
        resolution = by_key.get(conflict.key)
        choice = resolution.choice if resolution else default_choice
        if choice == ResolutionChoice.EXTERNAL:
            version = conflict.external_version
        elif choice == ResolutionChoice.LOCAL:
            version = conflict.local_version
        else:
            version = resolution.manual_version
        plan.append((conflict, choice, version))
    return plan


def apply_resolutions(
    result: MergeResult,
    resolutions: Iterable[ConflictResolution] = (),
    default_choice: ResolutionChoice = ResolutionChoice.LOCAL,
    year_map_key: str = DEFAULT_YEAR_MAP_KEY,
) -> Document:
    """
    Build the final document from a merge result and the user's choices.

    Args:
        result: Output of the three-way merge (not modified)
        resolutions: Decisions for some or all conflicts
        default_choice: Choice used for conflicts without a decision
        year_map_key: Document key holding per-year collections

    Returns:
        A new document with every conflict settled
    """
    plan = plan_resolutions(result, resolutions, default_choice)
    return apply_plan(result, plan, year_map_key)


def apply_plan(
    result: MergeResult,
    plan: list[tuple[Conflict, ResolutionChoice, Optional[Entity]]],
    year_map_key: str = DEFAULT_YEAR_MAP_KEY,
) -> Document:
    """
    Build the final document from a plan made by plan_resolutions().

    Raises:
        ResolutionError: The merged document lacks a conflict's collection
    """
    document = copy.deepcopy(result.merged)

    for conflict, _choice, version in plan:
        if version is None:
            continue
        collection = _target_collection(document, conflict, year_map_key)
        collection.append(copy.deepcopy(version))

    return document


def _target_collection(
    document: Document,
    conflict: Conflict,
    year_map_key: str,
) -> list[Entity]:
    key = conflict.collection_type.document_key
    container = document
    if conflict.year is not None:
        container = document.get(year_map_key, {}).get(conflict.year)
    if container is None or key not in container:
        location = f"year '{conflict.year}'" if conflict.year else "document"
        raise ResolutionError(f"Merged {location} has no '{key}' collection")
    return container[key]
