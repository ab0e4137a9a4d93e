"""
Engine — In-memory collections and the registry that owns them.

- Collection: records keyed by an engine-assigned surrogate key
- DynamicView: live sort/find/where projection over a collection
- CollectionRegistry: one collection per resource name
"""

from viewstore.engine.collection import (
    SURROGATE_KEY,
    Collection,
    CollectionError,
    DuplicateRecordError,
    DynamicView,
    RecordNotFoundError,
    matches,
)
from viewstore.engine.registry import (
    CollectionRegistry,
    get_registry,
    reset_registry,
)

__all__ = [
    "SURROGATE_KEY",
    "Collection",
    "CollectionError",
    "DuplicateRecordError",
    "DynamicView",
    "RecordNotFoundError",
    "matches",
    "CollectionRegistry",
    "get_registry",
    "reset_registry",
]
