"""
ORM-level immutability for the movement journal.

A ``StockMovement`` is written once, in the same transaction as the balance
change it describes, and is never edited or deleted afterwards. Corrections
are posted as new offsetting movements.

A ``before_flush`` listener on every ``Session`` rejects pending updates and
deletes of movement rows before any SQL is emitted. ``AsyncSession`` flushes
through its underlying ``Session``, so the listener covers async code too.
Bulk ``update()``/``delete()`` statements bypass the unit of work and are not
covered here.
"""

import logging

from sqlalchemy import event
from sqlalchemy.orm import Session

from stockledger.core.exceptions import ImmutableMovementError

logger = logging.getLogger(__name__)


def _reject_movement_changes(session, flush_context, instances):
    from stockledger.models.inventory.stock_movement_models import StockMovement

    for obj in session.deleted:
        if isinstance(obj, StockMovement):
            logger.error("Blocked delete of stock movement", extra={"movement_id": obj.id})
            raise ImmutableMovementError(obj.id)

    for obj in session.dirty:
        if isinstance(obj, StockMovement) and session.is_modified(obj, include_collections=False):
            logger.error("Blocked update of stock movement", extra={"movement_id": obj.id})
            raise ImmutableMovementError(obj.id)


def register_immutability_listeners() -> None:
    if not event.contains(Session, "before_flush", _reject_movement_changes):
        event.listen(Session, "before_flush", _reject_movement_changes)


def unregister_immutability_listeners() -> None:
    if event.contains(Session, "before_flush", _reject_movement_changes):
        event.remove(Session, "before_flush", _reject_movement_changes)
