"""
Views — Descriptors and facet builders for dynamic views.

A descriptor is pure metadata. register_view() turns it into a live view by
applying, in order: sort, equality filters, search predicate.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from viewstore.engine import DynamicView
from viewstore.engine.collection import Predicate, Record


class SortSpec(BaseModel):
    """Single-attribute sort."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    attribute: str = Field(..., min_length=1)
    is_descending: bool = Field(default=False, alias="isDescending")


@dataclass
class ViewDescriptor:
    """
    Filter/sort/search parameters a view is rebuilt from.
    """
    filters: dict[str, Any] = field(default_factory=dict)
    sort_by: SortSpec | None = None
    search: str = ""


def coerce_sort(sort_by: SortSpec | Mapping[str, Any] | None) -> SortSpec | None:
    """Accept a SortSpec, a mapping, or None. Empty mappings mean no sort."""
    if sort_by is None or isinstance(sort_by, SortSpec):
        return sort_by
    if not sort_by:
        return None
    return SortSpec.model_validate(dict(sort_by))


def coerce_descriptor(
    view_params: ViewDescriptor | Mapping[str, Any] | None,
) -> ViewDescriptor | None:
    """
    Accept a ViewDescriptor, a ``{filters, sortBy, search}`` mapping, or None.

    ``sort_by`` is accepted in place of ``sortBy``.
    """
    if view_params is None or isinstance(view_params, ViewDescriptor):
        return view_params
    sort_by = view_params.get("sortBy", view_params.get("sort_by"))
    return ViewDescriptor(
        filters=dict(view_params.get("filters") or {}),
        sort_by=coerce_sort(sort_by),
        search=view_params.get("search") or "",
    )


def filter_clauses(filters: Mapping[str, Any]) -> list[dict[str, Any]]:
    """One equality clause per field; None values emit no clause."""
    return [{key: value} for key, value in filters.items() if value is not None]


def _field_text(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False).lower()


def build_search(query: str) -> Predicate:
    """
    Case-insensitive substring match over every field of a record.

    Each field is JSON-encoded before matching, so string fields are
    compared in their quoted form.
    """
    needle = query.lower()

    def predicate(record: Record) -> bool:
        return any(needle in _field_text(value) for value in record.values())

    return predicate


def apply_descriptor(view: DynamicView, descriptor: ViewDescriptor) -> DynamicView:
    """Apply every present facet of a descriptor to a fresh view."""
    if descriptor.sort_by is not None:
        view.apply_simple_sort(descriptor.sort_by.attribute, descriptor.sort_by.is_descending)
    for clause in filter_clauses(descriptor.filters):
        view.apply_find(clause)
    if descriptor.search:
        view.apply_where(build_search(descriptor.search))
    return view
