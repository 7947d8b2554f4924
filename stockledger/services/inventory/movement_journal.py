import logging
from decimal import Decimal

from sqlalchemy import select, func, and_, union_all, literal
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.constants.movement_type import MovementType
from stockledger.core.exceptions import InvalidMovementError
from stockledger.models.inventory.stock_key import StockKey
from stockledger.models.inventory.stock_movement_models import StockMovement
from stockledger.utils.decimal_utils import to_quantity

logger = logging.getLogger(__name__)


# =====================================================
# APPEND
# =====================================================
async def record_movement(
    db: AsyncSession,
    *,
    source: StockKey | None,
    destination: StockKey | None,
    quantity: Decimal,
    movement_type: MovementType,
    reference_doc: str | None,
    actor_id: int,
) -> StockMovement:
    """Append one journal row. Callers hold the balance locks for both sides."""
    quantity = to_quantity(quantity)

    if quantity <= 0:
        raise InvalidMovementError("Movement quantity must be positive")

    if source is None and destination is None:
        raise InvalidMovementError("Movement needs a source or a destination")

    sides = [k for k in (source, destination) if k is not None]
    if len({(k.part_id, k.lot_id) for k in sides}) != 1:
        raise InvalidMovementError("Both sides of a movement must be the same part and lot")

    part_id, lot_id = sides[0].part_id, sides[0].lot_id

    movement = StockMovement(
        part_id=part_id,
        lot_id=lot_id,
        from_location_id=source.location_id if source else None,
        from_status_id=source.status_id if source else None,
        to_location_id=destination.location_id if destination else None,
        to_status_id=destination.status_id if destination else None,
        quantity=quantity,
        movement_type=movement_type,
        reference_doc=reference_doc,
        created_by=actor_id,
    )
    db.add(movement)
    await db.flush()

    return movement


# =====================================================
# HISTORY
# =====================================================
async def list_movements(
    db: AsyncSession,
    *,
    part_id: int,
    lot_id: int | None = None,
    page: int = 1,
    page_size: int = 50,
):
    filters = [StockMovement.part_id == part_id]
    if lot_id:
        filters.append(StockMovement.lot_id == lot_id)

    total = await db.scalar(
        select(func.count()).select_from(StockMovement).where(*filters)
    )

    rows = (
        await db.execute(
            select(StockMovement)
            .where(*filters)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
    ).scalars().all()

    return {"total": total or 0, "items": list(rows)}


async def count_movements(db: AsyncSession, **filters) -> int:
    stmt = select(func.count()).select_from(StockMovement).filter_by(**filters)
    return await db.scalar(stmt) or 0


# =====================================================
# NET QUANTITY DERIVED FROM THE JOURNAL
# =====================================================
def _signed_sides(part_id: int | None = None):
    """One row per movement side: +quantity for the destination key, -quantity for the source key."""
    inbound = select(
        StockMovement.part_id,
        StockMovement.lot_id,
        StockMovement.to_location_id.label("location_id"),
        StockMovement.to_status_id.label("status_id"),
        StockMovement.quantity.label("signed_quantity"),
    ).where(StockMovement.to_location_id.isnot(None))

    outbound = select(
        StockMovement.part_id,
        StockMovement.lot_id,
        StockMovement.from_location_id.label("location_id"),
        StockMovement.from_status_id.label("status_id"),
        (literal(0) - StockMovement.quantity).label("signed_quantity"),
    ).where(StockMovement.from_location_id.isnot(None))

    if part_id is not None:
        inbound = inbound.where(StockMovement.part_id == part_id)
        outbound = outbound.where(StockMovement.part_id == part_id)

    return union_all(inbound, outbound).subquery("sides")


async def net_quantity_for_key(db: AsyncSession, key: StockKey) -> Decimal:
    sides = _signed_sides(key.part_id)
    total = await db.scalar(
        select(func.coalesce(func.sum(sides.c.signed_quantity), 0)).where(
            and_(
                sides.c.lot_id == key.lot_id,
                sides.c.location_id == key.location_id,
                sides.c.status_id == key.status_id,
            )
        )
    )
    return to_quantity(total)


async def net_quantities(db: AsyncSession, *, part_id: int | None = None) -> dict[StockKey, Decimal]:
    sides = _signed_sides(part_id)
    rows = await db.execute(
        select(
            sides.c.part_id,
            sides.c.lot_id,
            sides.c.location_id,
            sides.c.status_id,
            func.sum(sides.c.signed_quantity).label("net"),
        ).group_by(
            sides.c.part_id,
            sides.c.lot_id,
            sides.c.location_id,
            sides.c.status_id,
        )
    )
    return {
        StockKey(r.part_id, r.lot_id, r.location_id, r.status_id): to_quantity(r.net)
        for r in rows.all()
    }
