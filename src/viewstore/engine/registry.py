"""
Collection Registry — One backing collection per resource name.

Stores built for the same name share the same collection. Tests create
their own registry; everything else uses the process-wide default.
"""

import logging
from dataclasses import dataclass, field
from itertools import count
from typing import Iterator

from viewstore.engine.collection import Collection

logger = logging.getLogger(__name__)


@dataclass
class CollectionRegistry:
    """
    Lazily creates and caches collections by name.

    All collections of one registry draw surrogate keys from a shared counter.
    """
    _collections: dict[str, Collection] = field(default_factory=dict)
    _keys: Iterator[int] = field(default_factory=lambda: count(1))

    def get_collection(self, name: str) -> Collection:
        """Get the collection for name, creating it on first use."""
        collection = self._collections.get(name)
        if collection is None:
            collection = Collection(name, key_source=self._keys)
            self._collections[name] = collection
            logger.debug(f"Created collection '{name}'")
        return collection

    def has_collection(self, name: str) -> bool:
        return name in self._collections

    def list_collections(self) -> list[str]:
        return list(self._collections.keys())

    def clear(self) -> None:
        """Forget every collection (testing helper)."""
        self._collections.clear()


# Process-wide registry
_registry = CollectionRegistry()


def get_registry() -> CollectionRegistry:
    """Get the process-wide collection registry."""
    return _registry


def reset_registry() -> None:
    """Drop all cached collections (for testing)."""
    _registry.clear()
