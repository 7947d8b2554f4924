import logging
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.constants.movement_type import MovementType
from stockledger.core.exceptions import InvalidMovementError
from stockledger.services.inventory.stock_mutator import (
    adjust_stock,
    transfer_stock,
    StockAdjustmentResult,
    StockTransferResult,
)
from stockledger.services.sequences.sequence_allocator import generate_receipt_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiptLine:
    part_id: int
    lot_id: int
    location_id: int
    status_id: int
    quantity: Decimal
    # when set, the received quantity is moved straight into this status (e.g. QC hold)
    hold_status_id: int | None = None


@dataclass
class ReceiptLineResult:
    receipt: StockAdjustmentResult
    hold: StockTransferResult | None = None


@dataclass
class GoodsReceiptPosting:
    receipt_number: str
    lines: list[ReceiptLineResult] = field(default_factory=list)


async def post_goods_receipt(
    db: AsyncSession,
    *,
    lines: list[ReceiptLine],
    actor_id: int,
    reference_doc: str | None = None,
) -> GoodsReceiptPosting:
    """Post all receipt lines into stock. Runs in the caller's transaction; one bad line fails the lot."""
    if not lines:
        raise InvalidMovementError("Goods receipt must have at least one line")

    receipt_number = reference_doc or await generate_receipt_number(db)
    posting = GoodsReceiptPosting(receipt_number=receipt_number)

    for line in lines:
        received = await adjust_stock(
            db,
            part_id=line.part_id,
            lot_id=line.lot_id,
            location_id=line.location_id,
            status_id=line.status_id,
            delta=line.quantity,
            movement_type=MovementType.RECEIPT,
            reference_doc=receipt_number,
            actor_id=actor_id,
        )

        held = None
        if line.hold_status_id is not None and line.hold_status_id != line.status_id:
            held = await transfer_stock(
                db,
                part_id=line.part_id,
                lot_id=line.lot_id,
                from_location_id=line.location_id,
                from_status_id=line.status_id,
                to_location_id=line.location_id,
                to_status_id=line.hold_status_id,
                quantity=line.quantity,
                reference_doc=receipt_number,
                actor_id=actor_id,
            )

        posting.lines.append(ReceiptLineResult(receipt=received, hold=held))

    logger.info(
        "Goods receipt posted",
        extra={"receipt_number": receipt_number, "lines": len(lines), "actor_id": actor_id},
    )
    return posting
