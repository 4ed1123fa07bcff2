"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

A scope's transaction list is append-only. Corrections are made by
appending offsetting transactions, never by editing history. The in-memory
Ledger already cannot be mutated; these listeners hold persisted rows to
the same rule.

SQLAlchemy fires events before UPDATE/DELETE statements reach the database:

    session.flush()
         |
         v
    [before_update] --> _block_update() --> ImmutabilityViolationError
    [before_delete] --> _block_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only inserts get here)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | When Immutable
--------------------|-------------------------------
TransactionRecord   | ALWAYS (from creation)
ShareRecord         | ALWAYS (from creation)

ScopeMemberRecord is not protected: display names may be edited.

===============================================================================
USAGE
===============================================================================

    from split_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event

from split_kernel.db.models import ShareRecord, TransactionRecord
from split_kernel.exceptions import ImmutabilityViolationError
from split_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_PROTECTED = (TransactionRecord, ShareRecord)


def _entity_id(target) -> str:
    return str(getattr(target, "transaction_id", None) or target.id)


def _block_update(mapper, connection, target):
    entity_type = type(target).__name__
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": _entity_id(target),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=_entity_id(target),
        reason="Recorded transactions are append-only and cannot be modified",
    )


def _block_delete(mapper, connection, target):
    entity_type = type(target).__name__
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": _entity_id(target),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=_entity_id(target),
        reason="Recorded transactions are append-only and cannot be deleted",
    )


def register_immutability_listeners():
    """Register update/delete guards on every protected model (idempotent)."""
    for model in _PROTECTED:
        if not event.contains(model, "before_update", _block_update):
            event.listen(model, "before_update", _block_update)
        if not event.contains(model, "before_delete", _block_delete):
            event.listen(model, "before_delete", _block_delete)


def _safe_remove_listener(target, event_name, listener_fn):
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """Remove the guards. FOR TESTING ONLY."""
    for model in _PROTECTED:
        _safe_remove_listener(model, "before_update", _block_update)
        _safe_remove_listener(model, "before_delete", _block_delete)
