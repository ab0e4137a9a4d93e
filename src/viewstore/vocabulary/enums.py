"""
Vocabulary enums — the shared language of the entity store.

Event kinds emitted to subscribers and the outcome values returned by
mutating operations.
"""

from enum import Enum


# =============================================================================
# NOTIFICATIONS
# =============================================================================

class StoreEvent(str, Enum):
    """
    Kinds of change notification a store emits.

    Values are the wire names subscribers attach to.
    """
    ADD = "add"
    UPDATE = "update"
    SET_COLLECTION = "setCollection"
    DESTROY = "destroy"
    DESTROY_ALL = "destroyAll"
    VIEW_REGISTERED = "viewRegistered"


# =============================================================================
# OUTCOMES
# =============================================================================

class MutationOutcome(str, Enum):
    """
    Result of a mutating store operation.

    Non-OK outcomes are recovered conditions, never exceptions.
    """
    OK = "OK"
    ALREADY_EXISTS = "ALREADY_EXISTS"  # add() on a known business key
    NOT_FOUND = "NOT_FOUND"            # update()/destroy() with nothing to match

    @property
    def ok(self) -> bool:
        return self is MutationOutcome.OK
