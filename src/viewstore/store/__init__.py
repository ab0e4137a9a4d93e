"""
Store — Entity stores and their dynamic views.

Provides:
- EntityStore: CRUD with upsert, identity resolution, change notification
- StoreConfig: construction options
- ViewDescriptor / SortSpec: view parameters
"""

from viewstore.store.config import StoreConfig
from viewstore.store.views import (
    SortSpec,
    ViewDescriptor,
    apply_descriptor,
    build_search,
    coerce_descriptor,
    coerce_sort,
    filter_clauses,
)
from viewstore.store.entity_store import EntityStore

__all__ = [
    "StoreConfig",
    "SortSpec",
    "ViewDescriptor",
    "apply_descriptor",
    "build_search",
    "coerce_descriptor",
    "coerce_sort",
    "filter_clauses",
    "EntityStore",
]
