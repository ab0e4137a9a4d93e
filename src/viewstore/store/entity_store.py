"""
Entity Store — CRUD, identity resolution and dynamic views over one collection.

One store per resource type. Records are matched on either the engine's
surrogate key or the application's business key (``id_attr``); at most one
stored record ever carries a given business key.

Every mutation emits a notification unless the caller passes notify=False.
Dynamic views are rebuilt from their descriptors; the store never patches a
live view incrementally.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any
from uuid import uuid4

from viewstore.engine import SURROGATE_KEY, Collection, CollectionRegistry, get_registry
from viewstore.engine.collection import Record
from viewstore.events import EventEmitter, Handler
from viewstore.observability import LogContext, StoreMetrics, get_logger, get_metrics, get_sync_id
from viewstore.store.config import StoreConfig
from viewstore.store.views import (
    SortSpec,
    ViewDescriptor,
    apply_descriptor,
    coerce_descriptor,
    coerce_sort,
)
from viewstore.vocabulary import MutationOutcome, StoreEvent

logger = get_logger("store")


class EntityStore:
    """
    Reactive cache for one resource type.

    Owns the named collection from the registry, a set of view descriptors,
    and an event emitter subscribers attach to.
    """

    def __init__(
        self,
        config: StoreConfig,
        registry: CollectionRegistry | None = None,
        metrics: StoreMetrics | None = None,
    ):
        self.config = config
        self.registry = registry or get_registry()
        self.metrics = metrics or get_metrics()
        self.collection: Collection = self.registry.get_collection(config.name)
        self.dynamic_views: dict[str, ViewDescriptor] = {}
        self.events = EventEmitter(source=config.name)

    @classmethod
    def create(
        cls,
        name: str,
        id_attr: str = "id",
        fk: str | None = None,
        registry: CollectionRegistry | None = None,
    ) -> "EntityStore":
        return cls(StoreConfig(name=name, id_attr=id_attr, fk=fk), registry=registry)

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def id_attr(self) -> str:
        return self.config.id_attr

    def __repr__(self) -> str:
        return f"EntityStore(name={self.name!r}, id_attr={self.id_attr!r}, records={len(self.collection)})"

    # ── Notifications ─────────────────────────────────────────

    def on(self, kind: StoreEvent | str, handler: Handler) -> None:
        self.events.on(kind, handler)

    def off(self, kind: StoreEvent | str, handler: Handler | None = None) -> None:
        self.events.off(kind, handler)

    def trigger(self, kind: StoreEvent, payload: Any, notify: bool = True) -> None:
        if not notify:
            return
        _, failures = self.events.emit(kind, payload)
        self.metrics.notifications_emitted.inc()
        if failures:
            self.metrics.handler_failures.inc(len(failures))

    def _warn(self, message: str) -> None:
        logger.warning(message, extra={"store": self.name})

    # ── Identity resolution ───────────────────────────────────

    def entity_query(self, obj: Mapping[str, Any]) -> dict[str, Any] | None:
        """Query matching obj by surrogate key, else business key, else None."""
        if obj.get(SURROGATE_KEY) is not None:
            return {SURROGATE_KEY: obj[SURROGATE_KEY]}
        if obj.get(self.id_attr) is not None:
            return {self.id_attr: obj[self.id_attr]}
        return None

    def resolve(self, obj: Mapping[str, Any]) -> Record | None:
        """
        Find the stored record obj refers to, or None.

        A surrogate key that no longer matches (the record was removed or
        came from elsewhere) falls back to the business key.
        """
        query = self.entity_query(obj)
        if query is None:
            return None
        found = self.collection.find_one(query)
        if found is None and SURROGATE_KEY in query and obj.get(self.id_attr) is not None:
            found = self.collection.find_one({self.id_attr: obj[self.id_attr]})
        return found

    def _merge(self, stale: Record, updates: Mapping[str, Any]) -> Record:
        merged = {**stale, **updates}
        merged[SURROGATE_KEY] = stale[SURROGATE_KEY]
        return merged

    # ── CRUD ──────────────────────────────────────────────────

    def add(self, obj: Record, notify: bool = True) -> MutationOutcome:
        """Insert obj unless a record with its identity is already stored."""
        if self.resolve(obj) is not None:
            self.metrics.duplicate_adds.inc()
            self._warn(
                f"Trying to add an already existing element "
                f"({self.id_attr}={obj.get(self.id_attr)!r})"
            )
            return MutationOutcome.ALREADY_EXISTS

        self.collection.insert(obj)
        self.metrics.records_inserted.inc()
        self.trigger(StoreEvent.ADD, obj, notify)
        return MutationOutcome.OK

    def update(self, updates: Mapping[str, Any], notify: bool = True) -> MutationOutcome:
        """Merge updates over the matching stored record; updates win."""
        stale = self.resolve(updates)
        if stale is None:
            self.metrics.missing_updates.inc()
            self._warn(
                f"Trying to update an inexisting element "
                f"({self.id_attr}={updates.get(self.id_attr)!r})"
            )
            return MutationOutcome.NOT_FOUND

        updated = self.collection.update(self._merge(stale, updates))
        self.metrics.records_updated.inc()
        self.trigger(StoreEvent.UPDATE, updated, notify)
        return MutationOutcome.OK

    def set_object(self, obj: Record, notify: bool = False) -> MutationOutcome:
        """Upsert a single record; silent unless notify is passed."""
        if self.resolve(obj) is not None:
            return self.update(obj, notify)
        return self.add(obj, notify)

    def set_collection(self, records: Iterable[Record], notify: bool = True) -> MutationOutcome:
        """
        Upsert every record, then emit one setCollection notification.

        Runs as a sync pass: log records (including subscriber failures) carry
        the caller's sync ID, or a fresh one when none is active.
        """
        with LogContext(get_sync_id() or uuid4()):
            inserted = updated = 0
            for obj in records:
                stale = self.resolve(obj)
                if stale is not None:
                    self.collection.update(self._merge(stale, obj))
                    updated += 1
                else:
                    self.collection.insert(obj)
                    inserted += 1
            self.metrics.records_inserted.inc(inserted)
            self.metrics.records_updated.inc(updated)
            logger.info(
                f"Synchronized {inserted + updated} records "
                f"({inserted} inserted, {updated} updated)",
                extra={"store": self.name},
            )
            self.trigger(StoreEvent.SET_COLLECTION, self.get_collection(), notify)
        return MutationOutcome.OK

    def destroy(self, id: Any, notify: bool = True) -> MutationOutcome:
        """Remove the record with business key id; unknown ids are tolerated."""
        record = self.get(id)
        outcome = MutationOutcome.NOT_FOUND
        if record is not None:
            self.collection.remove(record)
            self.metrics.records_removed.inc()
            outcome = MutationOutcome.OK
        self.trigger(StoreEvent.DESTROY, id, notify)
        return outcome

    def destroy_all(self, notify: bool = True) -> MutationOutcome:
        """Empty the collection; views and descriptors are kept."""
        removed = len(self.collection)
        self.collection.remove_data_only()
        self.metrics.records_removed.inc(removed)
        self.trigger(StoreEvent.DESTROY_ALL, self.get_collection(), notify)
        return MutationOutcome.OK

    # ── Queries ───────────────────────────────────────────────

    def get(self, id: Any) -> Record | None:
        if id is None:
            return None
        return self.collection.find_one({self.id_attr: id})

    def find(self, query: Mapping[str, Any] | None = None) -> list[Record]:
        return self.collection.find(dict(query) if query else None)

    def get_collection(self, tag: str | None = None) -> list[Record]:
        """All records, or the materialized data of a registered view."""
        if not tag:
            return self.find()
        view = self.collection.get_dynamic_view(tag)
        if view is None:
            return []
        data = view.data()
        self.metrics.view_size.observe(len(data))
        return data

    # ── Dynamic views ─────────────────────────────────────────

    def _descriptor(self, tag: str) -> ViewDescriptor:
        if tag not in self.dynamic_views:
            self.dynamic_views[tag] = ViewDescriptor()
        return self.dynamic_views[tag]

    def filter(self, tag: str, filter_query: Mapping[str, Any]) -> None:
        """Merge filter_query into the view's filters and rebuild it."""
        descriptor = self._descriptor(tag)
        descriptor.filters.update(filter_query)
        self.register_view(tag, descriptor)

    def search(self, tag: str, search_query: str | None) -> None:
        """Replace the view's search term and rebuild it."""
        descriptor = self._descriptor(tag)
        descriptor.search = search_query or ""
        self.register_view(tag, descriptor)

    def sort(self, tag: str, sort_by: SortSpec | Mapping[str, Any] | None) -> None:
        """Replace the view's sort and rebuild it."""
        descriptor = self._descriptor(tag)
        descriptor.sort_by = coerce_sort(sort_by)
        self.register_view(tag, descriptor)

    def reset_view(self, tag: str, reregister: bool = True) -> None:
        """
        Drop the live view for tag.

        Unless reregister is False, a bare view is registered in its place.
        The stored descriptor is left untouched.
        """
        self.collection.remove_dynamic_view(tag)
        if reregister is not False:
            self.register_view(tag)

    def register_view(
        self,
        tag: str,
        view_params: ViewDescriptor | Mapping[str, Any] | None = None,
    ) -> None:
        """Discard any live view for tag and build a new one from view_params."""
        descriptor = coerce_descriptor(view_params)
        self.collection.remove_dynamic_view(tag)
        view = self.collection.add_dynamic_view(tag)
        if descriptor is not None:
            apply_descriptor(view, descriptor)
        self.metrics.views_registered.inc()
        logger.debug(f"Registered view '{tag}'", extra={"store": self.name})
        self.trigger(StoreEvent.VIEW_REGISTERED, tag)

    def get_view_descriptor(self, tag: str) -> ViewDescriptor | None:
        return self.dynamic_views.get(tag)
