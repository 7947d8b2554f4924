import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.models.inventory.stock_balance_models import StockBalance
from stockledger.models.inventory.stock_key import StockKey
from stockledger.services.inventory.movement_journal import net_quantities
from stockledger.utils.decimal_utils import to_quantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceDiscrepancy:
    key: StockKey
    balance_quantity: Decimal
    journal_quantity: Decimal

    @property
    def difference(self) -> Decimal:
        return self.balance_quantity - self.journal_quantity


async def reconcile_balances(
    db: AsyncSession,
    *,
    part_id: int | None = None,
) -> list[BalanceDiscrepancy]:
    """Compare every stored balance with the net of its journal movements. Read only."""
    stmt = select(StockBalance)
    if part_id is not None:
        stmt = stmt.where(StockBalance.part_id == part_id)

    balances = {b.key: to_quantity(b.quantity) for b in (await db.scalars(stmt)).all()}
    journal = await net_quantities(db, part_id=part_id)

    zero = to_quantity(0)
    discrepancies = []
    for key in sorted(set(balances) | set(journal)):
        balance_qty = balances.get(key, zero)
        journal_qty = journal.get(key, zero)
        if balance_qty != journal_qty:
            discrepancies.append(BalanceDiscrepancy(key, balance_qty, journal_qty))
            logger.error(
                "Stock balance does not match its movements",
                extra={
                    "key": key.as_dict(),
                    "balance_quantity": str(balance_qty),
                    "journal_quantity": str(journal_qty),
                },
            )

    logger.info(
        "Ledger reconciliation finished",
        extra={"keys_checked": len(balances), "discrepancies": len(discrepancies)},
    )
    return discrepancies
