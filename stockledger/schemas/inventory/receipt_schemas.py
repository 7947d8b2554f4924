from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel, Field

from stockledger.schemas.inventory.stock_schemas import (
    StockAdjustmentResultSchema,
    StockTransferResultSchema,
)


class ReceiptLineSchema(BaseModel):
    part_id: int = Field(gt=0)
    lot_id: int = Field(gt=0)
    location_id: int = Field(gt=0)
    status_id: int = Field(gt=0)
    quantity: Decimal = Field(gt=0, max_digits=18, decimal_places=4)
    hold_status_id: Optional[int] = Field(None, gt=0)


class GoodsReceiptPostSchema(BaseModel):
    reference_doc: Optional[str] = Field(None, max_length=100)
    lines: List[ReceiptLineSchema] = Field(min_length=1)


class ReceiptLineResultSchema(BaseModel):
    receipt: StockAdjustmentResultSchema
    hold: Optional[StockTransferResultSchema] = None

    class Config:
        from_attributes = True


class GoodsReceiptPostingSchema(BaseModel):
    receipt_number: str
    lines: List[ReceiptLineResultSchema]

    class Config:
        from_attributes = True
