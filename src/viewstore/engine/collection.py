"""
Collection — Indexed in-memory record collection with live dynamic views.

Records are plain dicts. Every inserted record is stamped with an
engine-assigned surrogate key (``$key``) that stays stable for its lifetime.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import count
from typing import Any, Callable, Iterator

SURROGATE_KEY = "$key"

Record = dict[str, Any]
Predicate = Callable[[Record], bool]


class CollectionError(Exception):
    """Base class for collection engine failures."""
    pass


class RecordNotFoundError(CollectionError):
    """Raised when an update or removal targets a record the collection doesn't hold."""
    pass


class DuplicateRecordError(CollectionError):
    """Raised when inserting a record that already carries a surrogate key."""
    pass


def matches(record: Record, query: dict[str, Any] | None) -> bool:
    """Field-equality match; every clause must hold."""
    if not query:
        return True
    for key, value in query.items():
        if key not in record or record[key] != value:
            return False
    return True


def _sort_key(value: Any) -> tuple:
    # None sorts first, then numbers, then everything else by string form
    if value is None:
        return (0, 0)
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    return (3, str(value))


@dataclass
class DynamicView:
    """
    Named live projection over a collection.

    Holds a pipeline of equality finds and predicates plus an optional sort.
    The pipeline is evaluated against the collection's current records each
    time data() is called.
    """
    name: str
    collection: "Collection"
    _finds: list[dict[str, Any]] = field(default_factory=list)
    _wheres: list[Predicate] = field(default_factory=list)
    _sort: tuple[str, bool] | None = None

    def apply_simple_sort(self, attribute: str, is_descending: bool = False) -> "DynamicView":
        """Sort results by a single attribute."""
        self._sort = (attribute, bool(is_descending))
        return self

    def apply_find(self, query: dict[str, Any]) -> "DynamicView":
        """Add an equality filter, AND-ed with the existing ones."""
        self._finds.append(dict(query))
        return self

    def apply_where(self, predicate: Predicate) -> "DynamicView":
        """Add a predicate filter, AND-ed with the existing ones."""
        self._wheres.append(predicate)
        return self

    def data(self) -> list[Record]:
        """Materialize the view against the current collection state."""
        results = [
            record for record in self.collection
            if all(matches(record, q) for q in self._finds)
            and all(pred(record) for pred in self._wheres)
        ]
        if self._sort is not None:
            attribute, descending = self._sort
            results.sort(
                key=lambda r: _sort_key(r.get(attribute)),
                reverse=descending,
            )
        return results


class Collection:
    """
    Addressable, queryable record collection.

    Insertion order is the engine-native order returned by find().

    Surrogate keys come from key_source. Collections sharing a source never
    hand out the same key, so a record copied between them cannot match an
    unrelated record by surrogate key. A standalone collection numbers from 1.
    """

    def __init__(self, name: str, key_source: Iterator[int] | None = None):
        self.name = name
        self._records: dict[int, Record] = {}
        self._views: dict[str, DynamicView] = {}
        self._next_key = key_source if key_source is not None else count(1)

    def __iter__(self) -> Iterator[Record]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    # -- records ---------------------------------------------------------

    def insert(self, record: Record) -> Record:
        """
        Store a record and stamp it with a fresh surrogate key.

        A key left over from a record this collection no longer holds is
        replaced.
        """
        if record.get(SURROGATE_KEY) in self._records:
            raise DuplicateRecordError(
                f"Record already has surrogate key {record[SURROGATE_KEY]} "
                f"in collection '{self.name}'"
            )
        key = next(self._next_key)
        record[SURROGATE_KEY] = key
        self._records[key] = record
        return record

    def update(self, record: Record) -> Record:
        """Replace the stored record sharing this record's surrogate key."""
        key = record.get(SURROGATE_KEY)
        if key is None or key not in self._records:
            raise RecordNotFoundError(
                f"Cannot update record without a known surrogate key "
                f"in collection '{self.name}'"
            )
        self._records[key] = record
        return record

    def remove(self, record: Record) -> None:
        """Remove a stored record."""
        key = record.get(SURROGATE_KEY) if record else None
        if key is None or key not in self._records:
            raise RecordNotFoundError(
                f"Cannot remove unknown record from collection '{self.name}'"
            )
        del self._records[key]

    def remove_data_only(self) -> None:
        """Drop every record; dynamic views are kept."""
        self._records.clear()

    def find_one(self, query: dict[str, Any]) -> Record | None:
        if SURROGATE_KEY in query and len(query) == 1:
            return self._records.get(query[SURROGATE_KEY])
        for record in self._records.values():
            if matches(record, query):
                return record
        return None

    def find(self, query: dict[str, Any] | None = None) -> list[Record]:
        return [r for r in self._records.values() if matches(r, query)]

    # -- dynamic views ---------------------------------------------------

    def add_dynamic_view(self, name: str) -> DynamicView:
        view = DynamicView(name=name, collection=self)
        self._views[name] = view
        return view

    def remove_dynamic_view(self, name: str) -> None:
        """Drop a view; unknown names are ignored."""
        self._views.pop(name, None)

    def get_dynamic_view(self, name: str) -> DynamicView | None:
        return self._views.get(name)

    def list_dynamic_views(self) -> list[str]:
        return list(self._views.keys())
