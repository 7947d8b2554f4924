import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from stockledger.core.config import RECONCILIATION_HOUR, RECONCILIATION_MINUTE
from stockledger.core.db import AsyncSessionLocal
from stockledger.services.inventory.reconciliation_service import reconcile_balances

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


@scheduler.scheduled_job("cron", hour=RECONCILIATION_HOUR, minute=RECONCILIATION_MINUTE)
async def ledger_reconciliation_job():
    # read only: never rewrites balances, a mismatch needs a human
    async with AsyncSessionLocal() as db:
        discrepancies = await reconcile_balances(db)

    if discrepancies:
        logger.error(
            "Nightly reconciliation found mismatched balances",
            extra={"count": len(discrepancies)},
        )
    return len(discrepancies)
