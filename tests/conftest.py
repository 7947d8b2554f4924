"""
Pytest fixtures for the stock ledger test suite.

Every test gets its own SQLite database file (aiosqlite) with the full schema
and a small set of reference data. Tests that need real row locks live in
test_concurrency_postgres.py and run only against PostgreSQL.
"""

import os

os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("DB_TYPE", "sqlite")

from decimal import Decimal
from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from stockledger.core.db import Base, build_engine, get_db
from stockledger.core.transaction import TransactionCoordinator, get_transaction_coordinator
from stockledger.constants.movement_type import MovementType
from stockledger.models import Part, Lot, Location, StockStatus, StockBalance, StockMovement
from stockledger.models.inventory.stock_key import StockKey
from stockledger.services.inventory.stock_mutator import adjust_stock

ACTOR_ID = 7


# --- Database ---

@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    test_engine = build_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        poolclass=NullPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def coordinator(session_factory) -> TransactionCoordinator:
    return TransactionCoordinator(session_factory)


# --- Reference data ---

@pytest_asyncio.fixture
async def refs(session_factory) -> SimpleNamespace:
    """One part with one lot, locations A and B, statuses OK and HOLD."""
    async with session_factory() as session:
        async with session.begin():
            part = Part(part_no="P-100", part_name="Hex bolt M8")
            session.add(part)
            await session.flush()

            lot = Lot(part_id=part.id, lot_number="L-0001")
            loc_a = Location(code="A", name="Main store")
            loc_b = Location(code="B", name="Quarantine bay")
            ok = StockStatus(code="OK", name="Available")
            hold = StockStatus(code="HOLD", name="On hold")
            session.add_all([lot, loc_a, loc_b, ok, hold])
            await session.flush()

            return SimpleNamespace(
                part_id=part.id,
                lot_id=lot.id,
                loc_a=loc_a.id,
                loc_b=loc_b.id,
                ok=ok.id,
                hold=hold.id,
            )


@pytest.fixture
def key_a_ok(refs) -> StockKey:
    return StockKey(refs.part_id, refs.lot_id, refs.loc_a, refs.ok)


@pytest.fixture
def key_b_hold(refs) -> StockKey:
    return StockKey(refs.part_id, refs.lot_id, refs.loc_b, refs.hold)


@pytest.fixture
def receive(coordinator):
    """Commit a RECEIPT into a key, the way a goods receipt would."""

    async def _receive(key: StockKey, quantity, reference_doc="GRN-TEST"):
        return await coordinator.run(
            lambda db: adjust_stock(
                db,
                **key.as_dict(),
                delta=Decimal(quantity),
                movement_type=MovementType.RECEIPT,
                reference_doc=reference_doc,
                actor_id=ACTOR_ID,
            )
        )

    return _receive


@pytest.fixture
def ledger_state(session_factory):
    """Committed (quantity, movement count) for a key, read in a fresh session."""

    async def _state(key: StockKey):
        async with session_factory() as session:
            balance = await session.scalar(
                select(StockBalance).where(
                    StockBalance.part_id == key.part_id,
                    StockBalance.lot_id == key.lot_id,
                    StockBalance.location_id == key.location_id,
                    StockBalance.status_id == key.status_id,
                )
            )
            movements = await session.scalar(select(func.count()).select_from(StockMovement))
            return (Decimal(balance.quantity) if balance else None), movements

    return _state


# --- HTTP ---

@pytest_asyncio.fixture
async def test_client(session_factory, coordinator) -> AsyncGenerator[AsyncClient, None]:
    from main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_transaction_coordinator] = lambda: coordinator
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
