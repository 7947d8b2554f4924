# stockledger/core/transaction.py

import logging
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.core.config import LOCK_TIMEOUT_MS, STATEMENT_TIMEOUT_MS
from stockledger.core.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AbortTransaction(Exception):
    """Raised inside a unit of work to roll it back without reporting an error."""

    def __init__(self, result: Any = None, reason: str | None = None):
        super().__init__(reason or "transaction aborted")
        self.result = result
        self.reason = reason


class TransactionCoordinator:
    """Runs one unit of work in its own session and transaction.

    Commit on normal return, rollback on any exception. Row locks taken by the
    unit of work are released when the transaction ends either way.
    """

    def __init__(
        self,
        session_factory=None,
        *,
        lock_timeout_ms: int = LOCK_TIMEOUT_MS,
        statement_timeout_ms: int = STATEMENT_TIMEOUT_MS,
    ):
        if session_factory is None:
            from stockledger.core.db import AsyncSessionLocal

            session_factory = AsyncSessionLocal

        self.session_factory = session_factory
        self.lock_timeout_ms = int(lock_timeout_ms)
        self.statement_timeout_ms = int(statement_timeout_ms)

    async def _apply_timeouts(self, session: AsyncSession) -> None:
        if session.get_bind().dialect.name != "postgresql":
            return
        # SET does not take bind parameters; both values are ints
        await session.execute(text(f"SET LOCAL lock_timeout = {self.lock_timeout_ms}"))
        await session.execute(text(f"SET LOCAL statement_timeout = {self.statement_timeout_ms}"))

    async def run(self, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async with self.session_factory() as session:
            try:
                async with session.begin():
                    await self._apply_timeouts(session)
                    return await fn(session)

            except AbortTransaction as abort:
                logger.info("Transaction aborted", extra={"reason": abort.reason})
                return abort.result

            except LockTimeoutError:
                logger.warning("Transaction rolled back after lock timeout")
                raise

            except Exception as exc:
                logger.debug("Transaction rolled back", extra={"error": type(exc).__name__})
                raise


async def with_transaction(
    fn: Callable[[AsyncSession], Awaitable[T]],
    *,
    session_factory=None,
) -> T:
    return await TransactionCoordinator(session_factory).run(fn)


# =====================================================
# DEPENDENCY
# =====================================================
def get_transaction_coordinator() -> TransactionCoordinator:
    return TransactionCoordinator()
