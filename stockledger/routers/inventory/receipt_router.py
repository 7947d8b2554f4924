from fastapi import APIRouter, Depends

from stockledger.core.transaction import TransactionCoordinator, get_transaction_coordinator
from stockledger.utils.get_actor import get_actor_id
from stockledger.utils.response import success_response, APIResponse

from stockledger.services.inventory.receipt_posting_service import post_goods_receipt, ReceiptLine
from stockledger.schemas.inventory.receipt_schemas import (
    GoodsReceiptPostSchema,
    GoodsReceiptPostingSchema,
)

router = APIRouter(prefix="/receipts", tags=["Goods Receipts"])


@router.post("/post", response_model=APIResponse[GoodsReceiptPostingSchema])
async def post_goods_receipt_api(
    payload: GoodsReceiptPostSchema,
    coordinator: TransactionCoordinator = Depends(get_transaction_coordinator),
    actor_id: int = Depends(get_actor_id),
):
    lines = [ReceiptLine(**line.model_dump()) for line in payload.lines]

    posting = await coordinator.run(
        lambda db: post_goods_receipt(
            db,
            lines=lines,
            actor_id=actor_id,
            reference_doc=payload.reference_doc,
        )
    )

    return success_response(
        "Goods receipt posted",
        GoodsReceiptPostingSchema.model_validate(posting),
    )
