"""Tests for entity store CRUD and identity resolution."""

import logging

import pytest

from viewstore.engine import SURROGATE_KEY, CollectionRegistry
from viewstore.observability import StoreMetrics
from viewstore.store import EntityStore, StoreConfig
from viewstore.vocabulary import MutationOutcome, StoreEvent


def strip(record):
    """Drop the engine-assigned key for comparison."""
    return {k: v for k, v in record.items() if k != SURROGATE_KEY}


@pytest.fixture
def registry():
    return CollectionRegistry()


@pytest.fixture
def store(registry):
    return EntityStore(StoreConfig(name="tasks"), registry=registry, metrics=StoreMetrics())


@pytest.fixture
def events(store):
    """Collect every notification the store emits, as (kind, payload)."""
    received = []
    for kind in StoreEvent:
        store.on(kind, lambda n: received.append((n.kind, n.payload)))
    return received


class TestConstruction:
    """Tests for store construction."""

    def test_same_name_shares_collection(self, registry):
        a = EntityStore.create("tasks", registry=registry)
        b = EntityStore.create("tasks", registry=registry)
        a.add({"id": 1})
        assert b.get(1) is not None
        assert a.collection is b.collection

    def test_views_are_per_store(self, registry):
        a = EntityStore.create("tasks", registry=registry)
        b = EntityStore.create("tasks", registry=registry)
        a.filter("open", {"status": "open"})
        assert b.get_view_descriptor("open") is None

    def test_custom_id_attr(self, registry):
        store = EntityStore.create("users", id_attr="uuid", registry=registry)
        store.add({"uuid": "u-1", "name": "ann"})
        assert store.get("u-1")["name"] == "ann"
        assert store.add({"uuid": "u-1"}) == MutationOutcome.ALREADY_EXISTS

    def test_repr(self, store):
        assert "tasks" in repr(store)


class TestResolve:
    """Tests for identity resolution."""

    def test_by_business_key(self, store):
        store.add({"id": 1, "name": "a"})
        assert store.resolve({"id": 1})["name"] == "a"

    def test_by_surrogate_key(self, store):
        store.add({"id": 1})
        record = store.get(1)
        assert store.resolve({SURROGATE_KEY: record[SURROGATE_KEY]}) is record

    def test_both_keys_resolve_same_record(self, store):
        store.add({"id": 1})
        store.add({"id": 2})
        by_business = store.resolve({"id": 2})
        by_surrogate = store.resolve({SURROGATE_KEY: by_business[SURROGATE_KEY]})
        assert by_business is by_surrogate

    def test_no_keys_is_no_match(self, store):
        store.add({"id": 1})
        assert store.entity_query({"name": "a"}) is None
        assert store.resolve({"name": "a"}) is None

    def test_zero_is_a_valid_business_key(self, store):
        store.add({"id": 0, "name": "zero"})
        assert store.get(0)["name"] == "zero"

    def test_record_from_other_store_does_not_match_by_surrogate(self, registry):
        tasks = EntityStore.create("tasks", registry=registry)
        users = EntityStore.create("users", registry=registry)
        tasks.add({"id": 1, "title": "t"})
        users.add({"id": 2, "name": "u"})

        copied = dict(tasks.get(1))
        assert users.resolve(copied) is None
        assert users.add(copied) == MutationOutcome.OK
        assert len(users.find()) == 2

    def test_stale_surrogate_falls_back_to_business_key(self, store):
        store.add({"id": 1, "name": "a"})
        assert store.resolve({SURROGATE_KEY: 999, "id": 1})["name"] == "a"


class TestAdd:
    """Tests for add."""

    def test_add_then_get(self, store):
        record = {"id": 1, "name": "a"}
        assert store.add(record) == MutationOutcome.OK
        assert store.get(1) == record
        assert not store.add(record).ok

    def test_duplicate_add_is_noop(self, store, caplog):
        store.add({"id": 1, "name": "a"})
        with caplog.at_level(logging.WARNING, logger="viewstore.store"):
            outcome = store.add({"id": 1, "name": "b"})

        assert outcome == MutationOutcome.ALREADY_EXISTS
        assert len(store.find()) == 1
        assert store.get(1)["name"] == "a"
        assert "already existing" in caplog.text
        assert store.metrics.duplicate_adds.value == 1

    def test_add_emits_add(self, store, events):
        record = {"id": 1}
        store.add(record)
        assert events == [(StoreEvent.ADD, record)]

    def test_duplicate_add_emits_nothing(self, store, events):
        store.add({"id": 1})
        events.clear()
        store.add({"id": 1})
        assert events == []

    def test_add_without_notify(self, store, events):
        store.add({"id": 1}, notify=False)
        assert events == []
        assert store.get(1) is not None

    def test_add_without_identity_inserts(self, store):
        store.add({"name": "anonymous"})
        store.add({"name": "anonymous"})
        assert len(store.find()) == 2


class TestUpdate:
    """Tests for update."""

    def test_merge_semantics(self, store):
        store.add({"id": 1, "a": 0, "b": 0})
        store.update({"id": 1, "a": 1})
        store.update({"id": 1, "b": 2})
        assert strip(store.get(1)) == {"id": 1, "a": 1, "b": 2}

    def test_update_missing_is_noop(self, store, caplog):
        with caplog.at_level(logging.WARNING, logger="viewstore.store"):
            outcome = store.update({"id": 7, "a": 1})

        assert outcome == MutationOutcome.NOT_FOUND
        assert store.find() == []
        assert "inexisting" in caplog.text

    def test_update_emits_merged_record(self, store, events):
        store.add({"id": 1, "a": 0, "b": 0}, notify=False)
        store.update({"id": 1, "a": 5})
        kind, payload = events[0]
        assert kind == StoreEvent.UPDATE
        assert strip(payload) == {"id": 1, "a": 5, "b": 0}

    def test_update_keeps_surrogate_key(self, store):
        store.add({"id": 1})
        key = store.get(1)[SURROGATE_KEY]
        store.update({"id": 1, "name": "x"})
        assert store.get(1)[SURROGATE_KEY] == key

    def test_update_by_surrogate_key_can_change_business_key(self, store):
        store.add({"id": 1})
        key = store.get(1)[SURROGATE_KEY]
        store.update({SURROGATE_KEY: key, "id": 10})
        assert store.get(1) is None
        assert store.get(10)[SURROGATE_KEY] == key


class TestSetObject:
    """Tests for upsert of a single record."""

    def test_inserts_when_absent(self, store):
        assert store.set_object({"id": 1, "a": 1}) == MutationOutcome.OK
        assert strip(store.get(1)) == {"id": 1, "a": 1}

    def test_updates_when_present(self, store):
        store.add({"id": 1, "a": 1, "b": 1})
        store.set_object({"id": 1, "a": 2})
        assert strip(store.get(1)) == {"id": 1, "a": 2, "b": 1}

    def test_idempotent(self, store):
        record = {"id": 1, "a": 1}
        store.set_object(record)
        first = [dict(r) for r in store.find()]
        store.set_object(record)
        assert [dict(r) for r in store.find()] == first

    def test_silent_by_default(self, store, events):
        store.set_object({"id": 1})
        store.set_object({"id": 1, "a": 2})
        assert events == []

    def test_notify_opt_in(self, store, events):
        store.set_object({"id": 1}, notify=True)
        store.set_object({"id": 1, "a": 2}, notify=True)
        assert [kind for kind, _ in events] == [StoreEvent.ADD, StoreEvent.UPDATE]


class TestSetCollection:
    """Tests for bulk upsert."""

    def test_single_notification(self, store, events):
        store.set_collection([{"id": 1}, {"id": 2}, {"id": 3}])
        assert [kind for kind, _ in events] == [StoreEvent.SET_COLLECTION]
        assert [r["id"] for r in events[0][1]] == [1, 2, 3]

    def test_merges_existing(self, store):
        store.add({"id": 1, "a": 0, "b": 0})
        store.set_collection([{"id": 1, "a": 1}, {"id": 2}])
        assert strip(store.get(1)) == {"id": 1, "a": 1, "b": 0}
        assert len(store.find()) == 2

    def test_no_duplicates_within_batch(self, store):
        store.set_collection([{"id": 1, "a": 1}, {"id": 1, "a": 2}])
        assert len(store.find()) == 1
        assert store.get(1)["a"] == 2

    def test_accepts_iterables(self, store):
        store.set_collection({"id": i} for i in range(3))
        assert len(store.find()) == 3

    def test_silent(self, store, events):
        store.set_collection([{"id": 1}], notify=False)
        assert events == []


class TestDestroy:
    """Tests for destroy and destroy_all."""

    def test_destroy(self, store, events):
        store.add({"id": 1}, notify=False)
        assert store.destroy(1) == MutationOutcome.OK
        assert store.get(1) is None
        assert events == [(StoreEvent.DESTROY, 1)]

    def test_destroy_unknown_is_tolerated(self, store, events):
        assert store.destroy(42) == MutationOutcome.NOT_FOUND
        assert events == [(StoreEvent.DESTROY, 42)]

    def test_destroy_all(self, store, events):
        store.set_collection([{"id": 1}, {"id": 2}], notify=False)
        store.destroy_all()
        assert store.find() == []
        assert events == [(StoreEvent.DESTROY_ALL, [])]

    def test_readd_after_destroy_all(self, store):
        record = {"id": 1}
        store.add(record)
        store.destroy_all()
        assert store.add(record) == MutationOutcome.OK
        assert store.get(1) is record

    def test_metrics(self, store):
        store.set_collection([{"id": 1}, {"id": 2}, {"id": 3}])
        store.destroy(1)
        store.destroy_all()
        assert store.metrics.records_inserted.value == 3
        assert store.metrics.records_removed.value == 3


class TestQueries:
    """Tests for get/find/get_collection."""

    def test_get_missing(self, store):
        assert store.get(1) is None
        assert store.get(None) is None

    def test_find_by_field(self, store):
        store.set_collection([
            {"id": 1, "status": "open"},
            {"id": 2, "status": "closed"},
            {"id": 3, "status": "open"},
        ])
        assert [r["id"] for r in store.find({"status": "open"})] == [1, 3]
        assert store.find({"status": "archived"}) == []

    def test_get_collection_without_tag(self, store):
        store.set_collection([{"id": 2}, {"id": 1}])
        assert [r["id"] for r in store.get_collection()] == [2, 1]

    def test_get_collection_unregistered_tag(self, store):
        store.add({"id": 1})
        assert store.get_collection("nope") == []


class TestNotifications:
    """Tests for subscriber plumbing on the store."""

    def test_off(self, store):
        received = []
        store.on(StoreEvent.ADD, received.append)
        store.off(StoreEvent.ADD, received.append)
        store.add({"id": 1})
        assert received == []

    def test_failing_handler_counted(self, store):
        def boom(notification):
            raise RuntimeError("no")

        store.on(StoreEvent.ADD, boom)
        assert store.add({"id": 1}) == MutationOutcome.OK
        assert store.metrics.handler_failures.value == 1
        assert store.metrics.notifications_emitted.value == 1
