from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, UniqueConstraint
from stockledger.core.db import Base
from stockledger.models.base.mixins import TimestampMixin


# Reference data is maintained elsewhere; these tables exist so that
# ledger foreign keys are enforced by the database.


class Part(Base, TimestampMixin):
    __tablename__ = "parts"

    id = Column(Integer, primary_key=True)
    part_no = Column(String(50), nullable=False, unique=True)
    part_name = Column(String(200), nullable=False)

    def __repr__(self):
        return f"<Part id={self.id} part_no={self.part_no}>"


class Lot(Base, TimestampMixin):
    __tablename__ = "lots"

    id = Column(Integer, primary_key=True)
    part_id = Column(Integer, ForeignKey("parts.id", ondelete="RESTRICT"), nullable=False, index=True)
    lot_number = Column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("part_id", "lot_number", name="uq_lot_part_number"),
        # target of the (lot_id, part_id) foreign keys on ledger tables
        UniqueConstraint("id", "part_id", name="uq_lot_id_part"),
    )

    def __repr__(self):
        return f"<Lot id={self.id} part_id={self.part_id} lot_number={self.lot_number}>"


class Location(Base, TimestampMixin):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(200), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Location id={self.id} code={self.code}>"


class StockStatus(Base, TimestampMixin):
    __tablename__ = "stock_statuses"

    id = Column(Integer, primary_key=True)
    code = Column(String(30), nullable=False, unique=True)  # e.g. OK, HOLD, REJECT
    name = Column(String(100), nullable=True)

    def __repr__(self):
        return f"<StockStatus id={self.id} code={self.code}>"
