"""Tests for the per-collection three-way diff."""

import pytest

from finance_merge.models.merge import ConflictReason, EntityOutcome
from finance_merge.reconciliation.diff_engine import CollectionDiffEngine, index_by_id
from finance_merge.reconciliation.errors import (
    DuplicateEntityIdError,
    MissingEntityIdError,
)


def entity(entity_id: str, name: str) -> dict:
    return {"id": entity_id, "name": name}


@pytest.fixture
def engine() -> CollectionDiffEngine:
    return CollectionDiffEngine()


class TestAddedEntities:
    """Ids absent from base."""

    def test_added_externally(self, engine):
        diff = engine.diff([], [entity("1", "New")], [])
        assert diff.resolved == [entity("1", "New")]
        assert diff.conflicts == []
        assert diff.outcomes["1"] == EntityOutcome.TAKE_EXTERNAL

    def test_added_locally(self, engine):
        diff = engine.diff([], [], [entity("1", "New")])
        assert diff.resolved == [entity("1", "New")]
        assert diff.outcomes["1"] == EntityOutcome.TAKE_LOCAL

    def test_identical_addition(self, engine):
        diff = engine.diff([], [entity("1", "New")], [entity("1", "New")])
        assert diff.resolved == [entity("1", "New")]
        assert diff.conflicts == []
        assert diff.outcomes["1"] == EntityOutcome.AGREED

    def test_different_addition_conflicts(self, engine):
        diff = engine.diff([], [entity("1", "File")], [entity("1", "App")])
        assert diff.resolved == []
        assert len(diff.conflicts) == 1
        conflict = diff.conflicts[0]
        assert conflict.reason == ConflictReason.BOTH_MODIFIED
        assert conflict.external_version == entity("1", "File")
        assert conflict.local_version == entity("1", "App")


class TestExistingEntities:
    """Ids present in base and on both sides."""

    def test_unchanged(self, engine):
        base = [entity("1", "Same")]
        diff = engine.diff(base, [entity("1", "Same")], [entity("1", "Same")])
        assert diff.resolved == base
        assert diff.outcomes["1"] == EntityOutcome.UNCHANGED

    def test_external_change_wins(self, engine):
        diff = engine.diff(
            [entity("1", "Original")],
            [entity("1", "Modified in File")],
            [entity("1", "Original")],
        )
        assert diff.resolved == [entity("1", "Modified in File")]
        assert diff.outcomes["1"] == EntityOutcome.TAKE_EXTERNAL

    def test_local_change_wins(self, engine):
        diff = engine.diff(
            [entity("1", "Original")],
            [entity("1", "Original")],
            [entity("1", "Modified in App")],
        )
        assert diff.resolved == [entity("1", "Modified in App")]
        assert diff.outcomes["1"] == EntityOutcome.TAKE_LOCAL

    def test_same_change_on_both_sides(self, engine):
        diff = engine.diff(
            [entity("1", "Original")],
            [entity("1", "Renamed")],
            [entity("1", "Renamed")],
        )
        assert diff.resolved == [entity("1", "Renamed")]
        assert diff.conflicts == []
        assert diff.outcomes["1"] == EntityOutcome.AGREED

    def test_different_changes_conflict(self, engine):
        diff = engine.diff(
            [entity("1", "Original")],
            [entity("1", "Modified in File")],
            [entity("1", "Modified in App")],
        )
        assert diff.resolved == []
        assert diff.conflicts[0].reason == ConflictReason.BOTH_MODIFIED
        assert diff.outcomes["1"] == EntityOutcome.CONFLICT


class TestDeletedEntities:
    """Ids present in base and missing on at least one side."""

    def test_external_delete_of_unchanged_wins(self, engine):
        diff = engine.diff([entity("1", "Account")], [], [entity("1", "Account")])
        assert diff.resolved == []
        assert diff.conflicts == []
        assert diff.outcomes["1"] == EntityOutcome.DELETED

    def test_external_delete_of_local_edit_conflicts(self, engine):
        diff = engine.diff([entity("1", "Original")], [], [entity("1", "Modified in App")])
        assert diff.resolved == []
        conflict = diff.conflicts[0]
        assert conflict.reason == ConflictReason.DELETE_MODIFY
        assert conflict.external_version is None
        assert conflict.local_version == entity("1", "Modified in App")

    def test_local_delete_of_unchanged_wins(self, engine):
        diff = engine.diff([entity("1", "Account")], [entity("1", "Account")], [])
        assert diff.resolved == []
        assert diff.conflicts == []
        assert diff.outcomes["1"] == EntityOutcome.DELETED

    def test_local_delete_of_external_edit_conflicts(self, engine):
        diff = engine.diff([entity("1", "Original")], [entity("1", "Modified in File")], [])
        conflict = diff.conflicts[0]
        assert conflict.reason == ConflictReason.DELETE_MODIFY
        assert conflict.external_version == entity("1", "Modified in File")
        assert conflict.local_version is None

    def test_deleted_on_both_sides(self, engine):
        diff = engine.diff([entity("1", "Gone")], [], [])
        assert diff.resolved == []
        assert diff.conflicts == []
        assert diff.outcomes["1"] == EntityOutcome.DELETED


class TestDiffProperties:
    """Ordering, purity and accounting."""

    def test_encounter_order_base_then_external_then_local(self, engine):
        diff = engine.diff(
            [entity("b", "B")],
            [entity("e", "E"), entity("b", "B")],
            [entity("l", "L"), entity("b", "B")],
        )
        assert [e["id"] for e in diff.resolved] == ["b", "e", "l"]

    def test_every_id_has_exactly_one_outcome(self, engine):
        diff = engine.diff(
            [entity("1", "A"), entity("2", "B"), entity("3", "C")],
            [entity("1", "A2"), entity("4", "D")],
            [entity("1", "A3"), entity("2", "B"), entity("5", "E")],
        )
        assert set(diff.outcomes) == {"1", "2", "3", "4", "5"}
        resolved_ids = {e["id"] for e in diff.resolved}
        conflict_ids = {c.entity_id for c in diff.conflicts}
        assert resolved_ids.isdisjoint(conflict_ids)
        assert diff.outcome_counts() == {
            EntityOutcome.CONFLICT: 1,
            EntityOutcome.DELETED: 2,
            EntityOutcome.TAKE_EXTERNAL: 1,
            EntityOutcome.TAKE_LOCAL: 1,
        }

    def test_resolved_entities_are_copies(self, engine):
        local = [{"id": "1", "tags": ["a"]}]
        diff = engine.diff([], [], local)
        diff.resolved[0]["tags"].append("b")
        assert local[0]["tags"] == ["a"]


class TestIndexById:
    """Tests for snapshot indexing."""

    def test_duplicate_id_is_rejected(self):
        with pytest.raises(DuplicateEntityIdError, match="Duplicate id '1' in accounts"):
            index_by_id([entity("1", "A"), entity("1", "B")], "accounts")

    @pytest.mark.parametrize("bad", [
        {"name": "No id"},
        {"id": 7, "name": "Numeric id"},
        "not-a-mapping",
    ])
    def test_entity_without_string_id_is_rejected(self, bad):
        with pytest.raises(MissingEntityIdError):
            index_by_id([bad], "accounts")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
