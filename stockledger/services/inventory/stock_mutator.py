"""
Stock mutator: the only writer of stock balances and stock movements.

Every mutation follows lock -> read -> validate -> journal -> update inside a
savepoint of the caller's transaction. A rejected mutation rolls its savepoint
back and leaves nothing behind; the caller decides whether the surrounding
transaction continues. Commit is always the caller's job.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.constants.movement_type import (
    MovementType,
    POSITIVE_MOVEMENTS,
    NEGATIVE_MOVEMENTS,
    SIGNED_MOVEMENTS,
)
from stockledger.core.db_errors import is_lock_timeout, is_foreign_key_violation
from stockledger.core.exceptions import (
    InsufficientStockError,
    InvalidMovementError,
    LockTimeoutError,
    ReferentialViolationError,
)
from stockledger.models.inventory.stock_key import StockKey
from stockledger.services.inventory.movement_journal import record_movement
from stockledger.services.inventory.stock_ledger_store import lock_or_create_balance
from stockledger.utils.decimal_utils import to_quantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockAdjustmentResult:
    stock_id: int
    new_quantity: Decimal
    movement_id: int


@dataclass(frozen=True)
class StockTransferResult:
    movement_id: int
    source_quantity: Decimal
    destination_quantity: Decimal


def _translate_db_error(exc: DBAPIError, keys: list[StockKey]) -> Exception:
    if is_lock_timeout(exc):
        logger.warning(
            "Stock balance lock wait timed out",
            extra={"keys": [k.as_dict() for k in keys]},
        )
        return LockTimeoutError()
    if isinstance(exc, IntegrityError) and is_foreign_key_violation(exc):
        return ReferentialViolationError(
            "Part, lot, location or status does not exist",
            {"keys": [k.as_dict() for k in keys]},
        )
    return exc


def _validate_adjustment(delta: Decimal, movement_type: MovementType) -> None:
    if delta == 0:
        raise InvalidMovementError("Stock adjustment quantity cannot be zero")

    if movement_type in POSITIVE_MOVEMENTS and delta < 0:
        raise InvalidMovementError(f"{movement_type.value} must have a positive quantity")

    if movement_type in NEGATIVE_MOVEMENTS and delta > 0:
        raise InvalidMovementError(f"{movement_type.value} must have a negative quantity")

    if movement_type not in POSITIVE_MOVEMENTS | NEGATIVE_MOVEMENTS | SIGNED_MOVEMENTS:
        raise InvalidMovementError(f"{movement_type.value} is not allowed for a stock adjustment")


# =====================================================
# ADJUST
# =====================================================
async def adjust_stock(
    db: AsyncSession,
    *,
    part_id: int,
    lot_id: int,
    location_id: int,
    status_id: int,
    delta,
    movement_type: MovementType | str,
    reference_doc: str | None = None,
    actor_id: int,
) -> StockAdjustmentResult:
    delta = to_quantity(delta)
    try:
        movement_type = MovementType(movement_type)
    except ValueError:
        raise InvalidMovementError(f"Unknown movement type '{movement_type}'") from None

    _validate_adjustment(delta, movement_type)
    key = StockKey(part_id, lot_id, location_id, status_id)

    try:
        async with db.begin_nested():
            balance = await lock_or_create_balance(db, key)

            current = to_quantity(balance.quantity)
            new_quantity = current + delta
            if new_quantity < 0:
                raise InsufficientStockError(key, current, -delta)

            movement = await record_movement(
                db,
                source=key if delta < 0 else None,
                destination=key if delta > 0 else None,
                quantity=abs(delta),
                movement_type=movement_type,
                reference_doc=reference_doc,
                actor_id=actor_id,
            )

            balance.quantity = new_quantity
            await db.flush()

    except InsufficientStockError as exc:
        logger.warning(
            "Stock adjustment rejected: insufficient stock",
            extra={"key": key.as_dict(), "available": str(exc.available), "delta": str(delta)},
        )
        raise

    except DBAPIError as exc:
        translated = _translate_db_error(exc, [key])
        if translated is exc:
            raise
        raise translated from exc

    logger.info(
        "Stock adjusted",
        extra={
            "key": key.as_dict(),
            "delta": str(delta),
            "new_quantity": str(new_quantity),
            "movement_id": movement.id,
            "movement_type": movement_type.value,
            "reference_doc": reference_doc,
        },
    )

    return StockAdjustmentResult(
        stock_id=balance.id,
        new_quantity=new_quantity,
        movement_id=movement.id,
    )


# =====================================================
# TRANSFER
# =====================================================
async def transfer_stock(
    db: AsyncSession,
    *,
    part_id: int,
    lot_id: int,
    from_location_id: int,
    from_status_id: int,
    to_location_id: int,
    to_status_id: int,
    quantity,
    reference_doc: str | None = None,
    actor_id: int,
) -> StockTransferResult:
    quantity = to_quantity(quantity)
    if quantity <= 0:
        raise InvalidMovementError("Transfer quantity must be positive")

    source = StockKey(part_id, lot_id, from_location_id, from_status_id)
    destination = StockKey(part_id, lot_id, to_location_id, to_status_id)
    if source == destination:
        raise InvalidMovementError("Source and destination must differ in location or status")

    try:
        async with db.begin_nested():
            # fixed lock order: two opposite transfers can never wait on each other
            balances = {}
            for key in sorted((source, destination)):
                balances[key] = await lock_or_create_balance(db, key)

            source_balance = balances[source]
            destination_balance = balances[destination]

            available = to_quantity(source_balance.quantity)
            if available < quantity:
                raise InsufficientStockError(source, available, quantity)

            source_balance.quantity = available - quantity
            destination_balance.quantity = to_quantity(destination_balance.quantity) + quantity

            movement = await record_movement(
                db,
                source=source,
                destination=destination,
                quantity=quantity,
                movement_type=MovementType.TRANSFER,
                reference_doc=reference_doc,
                actor_id=actor_id,
            )
            await db.flush()

    except InsufficientStockError as exc:
        logger.warning(
            "Stock transfer rejected: insufficient stock",
            extra={"source": source.as_dict(), "available": str(exc.available), "quantity": str(quantity)},
        )
        raise

    except DBAPIError as exc:
        translated = _translate_db_error(exc, [source, destination])
        if translated is exc:
            raise
        raise translated from exc

    logger.info(
        "Stock transferred",
        extra={
            "source": source.as_dict(),
            "destination": destination.as_dict(),
            "quantity": str(quantity),
            "movement_id": movement.id,
            "reference_doc": reference_doc,
        },
    )

    return StockTransferResult(
        movement_id=movement.id,
        source_quantity=to_quantity(source_balance.quantity),
        destination_quantity=to_quantity(destination_balance.quantity),
    )
