"""
Reconciliation Exceptions

The engine has no recoverable errors of its own. Conflicts are data, not
errors. Everything raised here is a programming error on the caller's side
and is raised immediately rather than letting the merge drop data.
"""


class MergeContractError(Exception):
    """Base exception for contract violations of the merge engine."""
    pass


class CollectionMismatchError(MergeContractError):
    """The three snapshots do not share the same collection layout."""
    pass


class DuplicateEntityIdError(MergeContractError):
    """The same id appears twice within one collection snapshot."""

    def __init__(self, collection: str, entity_id: str):
        self.collection = collection
        self.entity_id = entity_id
        super().__init__(f"Duplicate id '{entity_id}' in {collection}")


class MissingEntityIdError(MergeContractError):
    """An entity without a string id reached the engine."""
    pass


class ResolutionError(MergeContractError):
    """Resolution choices that do not fit the merge result."""
    pass
