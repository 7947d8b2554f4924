from sqlalchemy import Column, Integer, Numeric, ForeignKey, ForeignKeyConstraint, CheckConstraint, UniqueConstraint, Index
from stockledger.core.db import Base
from stockledger.models.base.mixins import TimestampMixin
from stockledger.models.inventory.stock_key import StockKey


QUANTITY = Numeric(18, 4)


class StockBalance(Base, TimestampMixin):
    """Quantity on hand for one (part, lot, location, status). Rows are never deleted."""

    __tablename__ = "stock_balances"

    id = Column(Integer, primary_key=True)
    part_id = Column(Integer, ForeignKey("parts.id", ondelete="RESTRICT"), nullable=False, index=True)
    lot_id = Column(Integer, nullable=False)
    location_id = Column(Integer, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    status_id = Column(Integer, ForeignKey("stock_statuses.id", ondelete="RESTRICT"), nullable=False)
    quantity = Column(QUANTITY, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("part_id", "lot_id", "location_id", "status_id", name="uq_stock_balance_key"),
        ForeignKeyConstraint(
            ["lot_id", "part_id"],
            ["lots.id", "lots.part_id"],
            name="fk_stock_balance_lot_of_part",
            ondelete="RESTRICT",
        ),
        CheckConstraint("quantity >= 0", name="ck_stock_balance_quantity_non_negative"),
        Index("ix_stock_balance_lot_location", "lot_id", "location_id"),
    )

    @property
    def key(self) -> StockKey:
        return StockKey(self.part_id, self.lot_id, self.location_id, self.status_id)

    def __repr__(self):
        return f"<StockBalance id={self.id} {self.key} qty={self.quantity}>"
