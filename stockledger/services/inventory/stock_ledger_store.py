import logging

from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.core.db_errors import is_foreign_key_violation, is_unique_violation
from stockledger.core.exceptions import ReferentialViolationError
from stockledger.models.inventory.stock_balance_models import StockBalance
from stockledger.models.inventory.stock_key import StockKey
from stockledger.models.masters.reference_models import Part, Location, StockStatus, Lot
from stockledger.utils.decimal_utils import to_quantity

logger = logging.getLogger(__name__)


def _key_filter(key: StockKey):
    return (
        StockBalance.part_id == key.part_id,
        StockBalance.lot_id == key.lot_id,
        StockBalance.location_id == key.location_id,
        StockBalance.status_id == key.status_id,
    )


# =====================================================
# LOCKING (write side, only for the stock mutator)
# =====================================================
async def lock_balance(db: AsyncSession, key: StockKey) -> StockBalance | None:
    # populate_existing: the identity map may hold a copy read before the lock
    return await db.scalar(
        select(StockBalance)
        .where(*_key_filter(key))
        .with_for_update()
        .execution_options(populate_existing=True)
    )


async def lock_or_create_balance(db: AsyncSession, key: StockKey) -> StockBalance:
    balance = await lock_balance(db, key)
    if balance is not None:
        return balance

    balance = StockBalance(**key.as_dict(), quantity=to_quantity(0))
    try:
        async with db.begin_nested():
            db.add(balance)
            await db.flush()
    except IntegrityError as exc:
        if is_foreign_key_violation(exc):
            raise ReferentialViolationError(
                "Part, lot, location or status does not exist",
                {"key": key.as_dict()},
            ) from exc
        if not is_unique_violation(exc):
            raise

        # another transaction created this key first; wait for its lock
        logger.debug("Balance insert race, relocking", extra={"key": key.as_dict()})
        balance = await lock_balance(db, key)
        if balance is None:
            raise

    return balance


# =====================================================
# READ SIDE
# =====================================================
async def get_balance(db: AsyncSession, key: StockKey) -> StockBalance | None:
    return await db.scalar(select(StockBalance).where(*_key_filter(key)))


async def get_quantity(db: AsyncSession, key: StockKey):
    balance = await get_balance(db, key)
    return to_quantity(balance.quantity if balance else 0)


async def list_balances(
    db: AsyncSession,
    *,
    part_id: int | None = None,
    location_id: int | None = None,
    status_id: int | None = None,
    search: str | None = None,
    include_zero: bool = False,
    page: int = 1,
    page_size: int = 20,
):
    filters = []

    if search:
        filters.append(
            or_(
                Part.part_no.ilike(f"%{search}%"),
                Part.part_name.ilike(f"%{search}%"),
                Location.code.ilike(f"%{search}%"),
            )
        )

    if part_id:
        filters.append(StockBalance.part_id == part_id)

    if location_id:
        filters.append(StockBalance.location_id == location_id)

    if status_id:
        filters.append(StockBalance.status_id == status_id)

    if not include_zero:
        filters.append(StockBalance.quantity > 0)

    stmt = (
        select(
            StockBalance,
            Part.part_no,
            Lot.lot_number,
            Location.code.label("location_code"),
            StockStatus.code.label("status_code"),
            func.count().over().label("total"),
        )
        .join(Part, StockBalance.part_id == Part.id)
        .join(Lot, StockBalance.lot_id == Lot.id)
        .join(Location, StockBalance.location_id == Location.id)
        .join(StockStatus, StockBalance.status_id == StockStatus.id)
        .where(*filters)
        .order_by(Part.part_no.asc(), Location.code.asc(), StockBalance.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    rows = (await db.execute(stmt)).all()

    if not rows:
        return {"total": 0, "items": []}

    items = [
        {
            "stock_id": r.StockBalance.id,
            "part_id": r.StockBalance.part_id,
            "part_no": r.part_no,
            "lot_id": r.StockBalance.lot_id,
            "lot_number": r.lot_number,
            "location_id": r.StockBalance.location_id,
            "location_code": r.location_code,
            "status_id": r.StockBalance.status_id,
            "status_code": r.status_code,
            "quantity": to_quantity(r.StockBalance.quantity),
            "updated_at": r.StockBalance.updated_at,
        }
        for r in rows
    ]

    return {"total": rows[0].total, "items": items}
