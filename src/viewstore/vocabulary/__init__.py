"""
Vocabulary — Enumerated types shared across the store, engine and events.
"""

from viewstore.vocabulary.enums import (
    StoreEvent,
    MutationOutcome,
)

__all__ = [
    "StoreEvent",
    "MutationOutcome",
]
