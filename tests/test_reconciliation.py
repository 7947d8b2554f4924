from decimal import Decimal

import pytest
from sqlalchemy import update, delete

from stockledger.constants.movement_type import MovementType
from stockledger.models.inventory.stock_balance_models import StockBalance
from stockledger.services.inventory.reconciliation_service import reconcile_balances
from stockledger.services.inventory.stock_mutator import adjust_stock, transfer_stock

from tests.conftest import ACTOR_ID

pytestmark = pytest.mark.asyncio


async def _post_some_activity(coordinator, receive, refs, key_a_ok):
    await receive(key_a_ok, "100")
    await coordinator.run(
        lambda db: adjust_stock(
            db,
            **key_a_ok.as_dict(),
            delta=Decimal("-12.5"),
            movement_type=MovementType.ISSUE,
            actor_id=ACTOR_ID,
        )
    )
    await coordinator.run(
        lambda db: transfer_stock(
            db,
            part_id=refs.part_id,
            lot_id=refs.lot_id,
            from_location_id=refs.loc_a,
            from_status_id=refs.ok,
            to_location_id=refs.loc_b,
            to_status_id=refs.hold,
            quantity=Decimal("40"),
            actor_id=ACTOR_ID,
        )
    )


async def test_ledger_is_consistent_after_normal_activity(
    coordinator, receive, refs, key_a_ok, db_session
):
    await _post_some_activity(coordinator, receive, refs, key_a_ok)

    assert await reconcile_balances(db_session) == []
    assert await reconcile_balances(db_session, part_id=refs.part_id) == []


async def test_tampered_balance_is_reported(
    coordinator, receive, refs, key_a_ok, key_b_hold, session_factory
):
    await _post_some_activity(coordinator, receive, refs, key_a_ok)

    async with session_factory() as session:
        async with session.begin():
            await session.execute(
                update(StockBalance)
                .where(StockBalance.location_id == refs.loc_b)
                .values(quantity=Decimal("45"))
            )

    async with session_factory() as session:
        discrepancies = await reconcile_balances(session)

    assert len(discrepancies) == 1
    found = discrepancies[0]
    assert found.key == key_b_hold
    assert found.balance_quantity == Decimal("45")
    assert found.journal_quantity == Decimal("40")
    assert found.difference == Decimal("5")


async def test_missing_balance_row_is_reported(
    coordinator, receive, refs, key_a_ok, session_factory
):
    await _post_some_activity(coordinator, receive, refs, key_a_ok)

    async with session_factory() as session:
        async with session.begin():
            await session.execute(delete(StockBalance).where(StockBalance.location_id == refs.loc_a))

    async with session_factory() as session:
        discrepancies = await reconcile_balances(session)

    assert [d.key for d in discrepancies] == [key_a_ok]
    assert discrepancies[0].balance_quantity == Decimal("0")
    assert discrepancies[0].journal_quantity == Decimal("47.5")


async def test_filter_by_part_ignores_other_parts(
    coordinator, receive, refs, key_a_ok, session_factory
):
    await _post_some_activity(coordinator, receive, refs, key_a_ok)

    async with session_factory() as session:
        async with session.begin():
            await session.execute(update(StockBalance).values(quantity=Decimal("1")))

    async with session_factory() as session:
        assert await reconcile_balances(session, part_id=refs.part_id + 1) == []
        assert len(await reconcile_balances(session, part_id=refs.part_id)) == 2
