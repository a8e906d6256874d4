"""Tests for the per-level branch store."""

from __future__ import annotations

import pytest

from branchdocs.schemas import Branch
from branchdocs.store import BranchDataStore
from conftest import make_record


@pytest.fixture
def store() -> BranchDataStore:
    store = BranchDataStore()
    store.set_collection(1, [make_record(1), make_record(2)])
    store.set_collection(2, [make_record(10, branch_id=1), make_record(11, branch_id=2)])
    return store


class TestSetCollection:
    """Tests for set_collection."""

    def test_flags_start_cleared(self) -> None:
        """Fetched records start collapsed and unflagged, whatever they carry."""
        store = BranchDataStore()
        store.set_collection(1, [make_record(1, isShow=True, isAdd=True)])

        record = store.find(1, 1)
        assert record.is_show is False
        assert record.is_add is False

    def test_round_trip(self, store: BranchDataStore) -> None:
        """Server fields are kept as given, in order."""
        assert [(r.id, r.branch_id, r.title) for r in store.get(2)] == [(10, 1, "Branch 10"), (11, 2, "Branch 11")]

    def test_expansion_survives_refetch(self, store: BranchDataStore) -> None:
        """A refetch keeps is_show for ids still present and clears is_add."""
        store.toggle_expanded(1, 1)
        store.set_add_target(1, 1)

        store.set_collection(1, [make_record(1, title="Renamed"), make_record(3)])

        assert store.find(1, 1).is_show is True
        assert store.find(1, 1).is_add is False
        assert store.find(1, 1).title == "Renamed"
        assert store.find(1, 3).is_show is False
        assert store.find(1, 2) is None

    def test_accepts_models(self) -> None:
        """Branch models are accepted as well as dicts."""
        store = BranchDataStore()
        store.set_collection(3, [Branch.model_validate(make_record(5, branch_id=4))])

        assert store.find(3, 5).branch_id == 4


class TestFlags:
    """Tests for the UI flag operations."""

    def test_toggle_twice_restores(self, store: BranchDataStore) -> None:
        """Toggling twice is a no-op and touches only the named record."""
        before = store.snapshot()

        store.toggle_expanded(1, 1)
        assert store.find(1, 1).is_show is True
        assert store.find(1, 2).is_show is False

        store.toggle_expanded(1, 1)
        assert store.snapshot() == before

    def test_add_target(self, store: BranchDataStore) -> None:
        """Only the named record is flagged."""
        store.set_add_target(2, 11)

        assert [r.is_add for r in store.get(2)] == [False, True]
        assert all(not r.is_add for r in store.get(1))

    def test_reset_all_add_targets(self, store: BranchDataStore) -> None:
        """Every level is cleared."""
        store.set_add_target(1, 2)
        store.set_add_target(2, 10)

        store.reset_all_add_targets()

        assert not any(r.is_add for level in store.snapshot().values() for r in level)


class TestMutations:
    """Tests for applying confirmed server changes."""

    def test_apply_create(self, store: BranchDataStore) -> None:
        """Created records are appended unflagged."""
        store.apply_create(2, make_record(12, branch_id=1, isShow=True))

        assert [r.id for r in store.get(2)] == [10, 11, 12]
        assert store.find(2, 12).is_show is False

    def test_apply_update_merges(self, store: BranchDataStore) -> None:
        """Server fields are replaced; local flags kept."""
        store.toggle_expanded(1, 1)

        store.apply_update(1, make_record(1, title="New title"))

        record = store.find(1, 1)
        assert record.title == "New title"
        assert record.is_show is True

    def test_apply_update_unknown_id(self, store: BranchDataStore) -> None:
        """Updating an id that is not loaded changes nothing."""
        before = store.get(1)

        store.apply_update(1, make_record(99))

        assert store.get(1) == before

    def test_delete_does_not_cascade(self, store: BranchDataStore) -> None:
        """Deleting a parent leaves its children in their own level."""
        store.apply_delete(1, 1)

        assert [r.id for r in store.get(1)] == [2]
        assert [r.id for r in store.get(2)] == [10, 11]
        assert store.children_of(2, 1)[0].id == 10

    def test_levels_are_isolated(self, store: BranchDataStore) -> None:
        """An operation on one level leaves the others untouched."""
        level2 = store.get(2)

        store.apply_create(1, make_record(3))
        store.toggle_expanded(1, 2)
        store.apply_delete(1, 1)

        assert store.get(2) == level2

    def test_reset(self, store: BranchDataStore) -> None:
        store.reset()

        assert all(records == [] for records in store.snapshot().values())


class TestSubscribe:
    """Tests for change notification."""

    def test_listener_receives_actions(self) -> None:
        """Each change is announced with a level-suffixed action name."""
        store = BranchDataStore()
        actions: list[str] = []
        unsubscribe = store.subscribe(actions.append)

        store.set_collection(4, [])
        store.toggle_expanded(4, 1)
        unsubscribe()
        store.reset_add_targets(4)

        assert actions == ["setCollection4", "toggleExpanded4"]

    def test_invalid_level(self) -> None:
        """Levels outside 1..5 are rejected."""
        with pytest.raises(ValueError):
            BranchDataStore().get(6)
