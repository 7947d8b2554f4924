from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.core.db import get_db
from stockledger.core.transaction import TransactionCoordinator, get_transaction_coordinator
from stockledger.utils.get_actor import get_actor_id
from stockledger.utils.response import success_response, APIResponse, PageData

from stockledger.services.inventory.stock_mutator import adjust_stock, transfer_stock
from stockledger.services.inventory.stock_ledger_store import list_balances
from stockledger.services.inventory.movement_journal import list_movements
from stockledger.services.inventory.reconciliation_service import reconcile_balances

from stockledger.schemas.inventory.stock_schemas import (
    StockAdjustmentCreateSchema,
    StockAdjustmentResultSchema,
    StockTransferCreateSchema,
    StockTransferResultSchema,
    StockBalanceTableSchema,
    StockMovementSchema,
    ReconciliationReportSchema,
)

router = APIRouter(prefix="/stock", tags=["Stock Ledger"])


# =========================
# ADJUST STOCK
# =========================
@router.post(
    "/adjustments",
    response_model=APIResponse[StockAdjustmentResultSchema],
)
async def adjust_stock_api(
    payload: StockAdjustmentCreateSchema,
    coordinator: TransactionCoordinator = Depends(get_transaction_coordinator),
    actor_id: int = Depends(get_actor_id),
):
    result = await coordinator.run(
        lambda db: adjust_stock(db, **payload.model_dump(), actor_id=actor_id)
    )

    return success_response(
        "Stock adjusted successfully",
        StockAdjustmentResultSchema.model_validate(result),
    )


# =========================
# TRANSFER STOCK
# =========================
@router.post(
    "/transfers",
    response_model=APIResponse[StockTransferResultSchema],
)
async def transfer_stock_api(
    payload: StockTransferCreateSchema,
    coordinator: TransactionCoordinator = Depends(get_transaction_coordinator),
    actor_id: int = Depends(get_actor_id),
):
    result = await coordinator.run(
        lambda db: transfer_stock(db, **payload.model_dump(), actor_id=actor_id)
    )

    return success_response(
        "Stock transferred successfully",
        StockTransferResultSchema.model_validate(result),
    )


# =========================
# CURRENT BALANCES
# =========================
@router.get(
    "/balances",
    response_model=APIResponse[PageData[StockBalanceTableSchema]],
)
async def list_balances_api(
    db: AsyncSession = Depends(get_db),
    part_id: int | None = Query(None),
    location_id: int | None = Query(None),
    status_id: int | None = Query(None),
    search: str | None = Query(None, max_length=100),
    include_zero: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    result = await list_balances(
        db,
        part_id=part_id,
        location_id=location_id,
        status_id=status_id,
        search=search,
        include_zero=include_zero,
        page=page,
        page_size=page_size,
    )

    return success_response("Stock balances fetched successfully", result)


# =========================
# MOVEMENT HISTORY
# =========================
@router.get(
    "/movements",
    response_model=APIResponse[PageData[StockMovementSchema]],
)
async def list_movements_api(
    db: AsyncSession = Depends(get_db),
    part_id: int = Query(..., ge=1),
    lot_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
):
    result = await list_movements(
        db,
        part_id=part_id,
        lot_id=lot_id,
        page=page,
        page_size=page_size,
    )

    return success_response(
        "Stock movements fetched successfully",
        {
            "total": result["total"],
            "items": [StockMovementSchema.model_validate(m) for m in result["items"]],
        },
    )


# =========================
# RECONCILIATION
# =========================
@router.get(
    "/reconciliation",
    response_model=APIResponse[ReconciliationReportSchema],
)
async def reconciliation_api(
    db: AsyncSession = Depends(get_db),
    part_id: int | None = Query(None),
):
    discrepancies = await reconcile_balances(db, part_id=part_id)

    return success_response(
        "Reconciliation completed",
        {
            "discrepancies": [
                {
                    "key": d.key.as_dict(),
                    "balance_quantity": d.balance_quantity,
                    "journal_quantity": d.journal_quantity,
                    "difference": d.difference,
                }
                for d in discrepancies
            ]
        },
    )
