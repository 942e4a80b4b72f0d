"""
Tests for the POI store, id generator and event hook.

Run with: python -m pytest _tests/test_poi_store.py -v
"""

import pytest

from gpr_viz.events import EventHook
from gpr_viz.models import DuplicatePoiError, Poi, PoiType
from gpr_viz.poi_store import PoiIdGenerator, PoiStore

from conftest import make_poi


@pytest.fixture
def store():
    return PoiStore()


class TestPoiStore:
    def test_add_then_delete_leaves_store_empty(self, store):
        store.add(make_poi("poi-101", "pipe"))
        assert len(store) == 1
        store.delete(0)
        assert len(store) == 0

    def test_add_then_delete_last_restores_prior_list(self, store):
        first, second = make_poi("poi-1"), make_poi("poi-2", "void")
        store.add(first)
        store.add(second)
        before = store.as_list()

        store.add(make_poi("poi-3", "culvert"))
        store.delete(len(store) - 1)

        assert store.as_list() == before

    def test_duplicate_id_rejected(self, store):
        store.add(make_poi("poi-1"))
        with pytest.raises(DuplicatePoiError):
            store.add(make_poi("poi-1", "void"))
        assert len(store) == 1

    @pytest.mark.parametrize("index", [-1, 1, 99])
    def test_out_of_range_delete_is_silent_noop(self, store, index):
        store.add(make_poi("poi-1"))
        notified = []
        store.changed.subscribe(notified.append)

        assert store.delete(index) is None
        assert len(store) == 1
        assert notified == []

    def test_delete_by_id(self, store):
        store.replace([make_poi("poi-1"), make_poi("poi-2")])
        removed = store.delete_by_id("poi-1")
        assert removed.id == "poi-1"
        assert [p.id for p in store] == ["poi-2"]
        assert store.delete_by_id("missing") is None

    def test_replace_rejects_duplicates(self, store):
        with pytest.raises(DuplicatePoiError):
            store.replace([make_poi("poi-1"), make_poi("poi-1")])

    def test_every_mutation_notifies_full_list(self, store):
        seen = []
        store.changed.subscribe(seen.append)

        store.add(make_poi("poi-1"))
        store.add(make_poi("poi-2"))
        store.delete(0)
        store.replace([])

        assert [[p.id for p in snapshot] for snapshot in seen] == [
            ["poi-1"],
            ["poi-1", "poi-2"],
            ["poi-2"],
            [],
        ]

    def test_get_and_find(self, store):
        store.add(make_poi("poi-7"))
        assert store.get(0).id == "poi-7"
        assert store.get(5) is None
        assert store.find("poi-7") == 0
        assert store.find("poi-8") is None


class TestPoiIdGenerator:
    def test_ids_start_after_seed(self):
        generator = PoiIdGenerator()
        assert generator.next_id() == ("poi-user-101", 101)
        assert generator.next_id() == ("poi-user-102", 102)
        assert generator.current == 102

    def test_custom_seed_and_prefix(self):
        generator = PoiIdGenerator(seed=0, prefix="local-")
        assert generator.next_id() == ("local-1", 1)


class TestPoiModel:
    def test_unknown_type_falls_back_to_other(self):
        poi = Poi.from_dict({"id": "x", "type": "meteorite", "slice_x": 1, "slice_y": 2})
        assert poi.type is PoiType.OTHER

    def test_dict_round_trip_keeps_mile_marker_none(self):
        poi = Poi.from_dict({"id": "x", "type": "pipe", "slice_x": 1, "slice_y": 2})
        assert poi.mile_marker is None
        assert Poi.from_dict(poi.as_dict()) == poi


class TestEventHook:
    def test_multiple_subscribers_in_order(self):
        hook = EventHook("test")
        calls = []
        hook.subscribe(lambda v: calls.append(("a", v)))
        hook.subscribe(lambda v: calls.append(("b", v)))
        hook.emit(1)
        assert calls == [("a", 1), ("b", 1)]

    def test_unsubscribe_function(self):
        hook = EventHook("test")
        calls = []
        unsubscribe = hook.subscribe(calls.append)
        unsubscribe()
        hook.emit(1)
        assert calls == []
        assert len(hook) == 0

    def test_subscriber_may_unsubscribe_itself_during_emit(self):
        hook = EventHook("test")
        calls = []

        def once(value):
            calls.append(value)
            hook.unsubscribe(once)

        hook.subscribe(once)
        hook.emit(1)
        hook.emit(2)
        assert calls == [1]
