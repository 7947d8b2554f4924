from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator, model_validator

from stockledger.constants.movement_type import MovementType


# -------------------------
# REQUESTS
# -------------------------
class StockAdjustmentCreateSchema(BaseModel):
    part_id: int = Field(gt=0)
    lot_id: int = Field(gt=0)
    location_id: int = Field(gt=0)
    status_id: int = Field(gt=0)
    delta: Decimal = Field(max_digits=18, decimal_places=4)
    movement_type: MovementType = MovementType.ADJUSTMENT
    reference_doc: Optional[str] = Field(None, max_length=100)

    @field_validator("delta")
    @classmethod
    def delta_not_zero(cls, v: Decimal) -> Decimal:
        if v == 0:
            raise ValueError("delta cannot be zero")
        return v


class StockTransferCreateSchema(BaseModel):
    part_id: int = Field(gt=0)
    lot_id: int = Field(gt=0)
    from_location_id: int = Field(gt=0)
    from_status_id: int = Field(gt=0)
    to_location_id: int = Field(gt=0)
    to_status_id: int = Field(gt=0)
    quantity: Decimal = Field(gt=0, max_digits=18, decimal_places=4)
    reference_doc: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def keys_differ(self):
        if (self.from_location_id, self.from_status_id) == (self.to_location_id, self.to_status_id):
            raise ValueError("source and destination must differ in location or status")
        return self


# -------------------------
# RESULTS
# -------------------------
class StockAdjustmentResultSchema(BaseModel):
    stock_id: int
    new_quantity: Decimal
    movement_id: int

    class Config:
        from_attributes = True


class StockTransferResultSchema(BaseModel):
    movement_id: int
    source_quantity: Decimal
    destination_quantity: Decimal

    class Config:
        from_attributes = True


# -------------------------
# READ MODELS
# -------------------------
class StockBalanceTableSchema(BaseModel):
    stock_id: int
    part_id: int
    part_no: str
    lot_id: int
    lot_number: str
    location_id: int
    location_code: str
    status_id: int
    status_code: str
    quantity: Decimal
    updated_at: Optional[datetime]


class StockMovementSchema(BaseModel):
    id: int
    part_id: int
    lot_id: int
    from_location_id: Optional[int]
    from_status_id: Optional[int]
    to_location_id: Optional[int]
    to_status_id: Optional[int]
    quantity: Decimal
    movement_type: MovementType
    reference_doc: Optional[str]
    created_by: int
    created_at: datetime

    class Config:
        from_attributes = True


class StockKeySchema(BaseModel):
    part_id: int
    lot_id: int
    location_id: int
    status_id: int


class BalanceDiscrepancySchema(BaseModel):
    key: StockKeySchema
    balance_quantity: Decimal
    journal_quantity: Decimal
    difference: Decimal


class ReconciliationReportSchema(BaseModel):
    discrepancies: List[BalanceDiscrepancySchema]
