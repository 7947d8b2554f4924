from sqlalchemy import Column, Integer, String, Enum, ForeignKey, ForeignKeyConstraint, CheckConstraint, Index
from stockledger.core.db import Base
from stockledger.constants.movement_type import MovementType
from stockledger.models.base.mixins import CreatedAtMixin
from stockledger.models.inventory.stock_balance_models import QUANTITY
from stockledger.models.inventory.stock_key import StockKey


class StockMovement(Base, CreatedAtMixin):
    """Append-only journal row. A null side means stock entered from or left to outside the ledger."""

    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True)
    part_id = Column(Integer, ForeignKey("parts.id", ondelete="RESTRICT"), nullable=False, index=True)
    lot_id = Column(Integer, nullable=False, index=True)
    from_location_id = Column(Integer, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=True)
    from_status_id = Column(Integer, ForeignKey("stock_statuses.id", ondelete="RESTRICT"), nullable=True)
    to_location_id = Column(Integer, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=True)
    to_status_id = Column(Integer, ForeignKey("stock_statuses.id", ondelete="RESTRICT"), nullable=True)
    quantity = Column(QUANTITY, nullable=False)
    movement_type = Column(Enum(MovementType, name="stock_movement_type"), nullable=False, index=True)
    reference_doc = Column(String(100), nullable=True, index=True)
    created_by = Column(Integer, nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(
            ["lot_id", "part_id"],
            ["lots.id", "lots.part_id"],
            name="fk_stock_movement_lot_of_part",
            ondelete="RESTRICT",
        ),
        CheckConstraint("quantity > 0", name="ck_stock_movement_quantity_positive"),
        CheckConstraint(
            "(from_location_id IS NULL) = (from_status_id IS NULL)",
            name="ck_stock_movement_from_side_complete",
        ),
        CheckConstraint(
            "(to_location_id IS NULL) = (to_status_id IS NULL)",
            name="ck_stock_movement_to_side_complete",
        ),
        CheckConstraint(
            "from_location_id IS NOT NULL OR to_location_id IS NOT NULL",
            name="ck_stock_movement_has_side",
        ),
        Index("ix_stock_movement_from_key", "part_id", "lot_id", "from_location_id", "from_status_id"),
        Index("ix_stock_movement_to_key", "part_id", "lot_id", "to_location_id", "to_status_id"),
    )

    @property
    def from_key(self) -> StockKey | None:
        if self.from_location_id is None:
            return None
        return StockKey(self.part_id, self.lot_id, self.from_location_id, self.from_status_id)

    @property
    def to_key(self) -> StockKey | None:
        if self.to_location_id is None:
            return None
        return StockKey(self.part_id, self.lot_id, self.to_location_id, self.to_status_id)

    def __repr__(self):
        return (
            f"<StockMovement id={self.id} type={self.movement_type} part_id={self.part_id} "
            f"lot_id={self.lot_id} from=({self.from_location_id},{self.from_status_id}) "
            f"to=({self.to_location_id},{self.to_status_id}) qty={self.quantity}>"
        )
