"""
Document number allocation.

Each document type draws from its own named counter. On PostgreSQL the
counter is a native sequence: ``nextval`` never blocks on other callers and
is not undone by a rollback, so values are unique and strictly increasing
but may have gaps. Other dialects (SQLite, development only) fall back to a
counter row incremented by one atomic ``UPDATE ... RETURNING``; there the
increment is part of the caller's transaction, so a value allocated in a
transaction that rolls back is handed out again. The never-reused guarantee
holds on PostgreSQL only.

The year in a formatted document number is display only. Counters do not
reset at the start of a calendar year.
"""

import logging
from datetime import date

from sqlalchemy import select, update, text
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.constants.sequences import (
    DOCUMENT_SEQUENCES,
    DOCUMENT_NUMBER_WIDTH,
    SEQUENCE_MAX_VALUE,
    PO_NUMBER_SEQ,
    QC_LOT_NUMBER_SEQ,
    RECEIPT_NUMBER_SEQ,
)
from stockledger.core.db_errors import is_sequence_exhausted
from stockledger.core.exceptions import UnknownSequenceError, SequenceExhaustedError
from stockledger.models.sequences.document_sequence_models import DocumentSequence, NATIVE_SEQUENCES

logger = logging.getLogger(__name__)


def _ensure_known(sequence_name: str) -> None:
    if sequence_name not in DOCUMENT_SEQUENCES:
        raise UnknownSequenceError(sequence_name)


def _uses_native_sequences(db: AsyncSession) -> bool:
    return db.get_bind().dialect.name == "postgresql"


def _increment_stmt(sequence_name: str):
    return (
        update(DocumentSequence)
        .where(DocumentSequence.name == sequence_name)
        .values(current_value=DocumentSequence.current_value + 1)
        .returning(DocumentSequence.current_value)
        .execution_options(synchronize_session=False)
    )


async def _next_counter_value(db: AsyncSession, sequence_name: str) -> int:
    value = await db.scalar(_increment_stmt(sequence_name))
    if value is not None:
        return value

    # first allocation for this name
    try:
        async with db.begin_nested():
            db.add(DocumentSequence(name=sequence_name, current_value=1))
            await db.flush()
        return 1
    except IntegrityError:
        return await db.scalar(_increment_stmt(sequence_name))


# =====================================================
# ALLOCATE
# =====================================================
async def next_value(db: AsyncSession, sequence_name: str) -> int:
    _ensure_known(sequence_name)

    try:
        if _uses_native_sequences(db):
            value = await db.scalar(select(NATIVE_SEQUENCES[sequence_name].next_value()))
        else:
            value = await _next_counter_value(db, sequence_name)
    except DBAPIError as exc:
        if is_sequence_exhausted(exc):
            logger.critical("Document sequence exhausted", extra={"sequence_name": sequence_name})
            raise SequenceExhaustedError(sequence_name) from exc
        raise

    if value > SEQUENCE_MAX_VALUE:
        logger.critical("Document sequence exhausted", extra={"sequence_name": sequence_name})
        raise SequenceExhaustedError(sequence_name)

    logger.debug("Sequence allocated", extra={"sequence_name": sequence_name, "value": value})
    return value


async def current_value(db: AsyncSession, sequence_name: str) -> int | None:
    """Last allocated value without allocating a new one; None if the counter was never used."""
    _ensure_known(sequence_name)

    if _uses_native_sequences(db):
        # name is whitelisted above, safe to inline as an identifier
        row = (
            await db.execute(text(f'SELECT last_value, is_called FROM "{sequence_name}"'))
        ).one()
        return row.last_value if row.is_called else None

    return await db.scalar(
        select(DocumentSequence.current_value).where(DocumentSequence.name == sequence_name)
    )


# =====================================================
# FORMAT
# =====================================================
def format_document_number(prefix: str, value: int, year: int) -> str:
    """``format_document_number("PO", 44, 2025) -> "PO-2025-000044"``."""
    if value < 0:
        raise ValueError(f"Document number value must be non-negative, got {value}")
    return f"{prefix}-{year}-{value:0{DOCUMENT_NUMBER_WIDTH}d}"


async def generate_document_number(
    db: AsyncSession,
    sequence_name: str,
    *,
    year: int | None = None,
) -> str:
    _ensure_known(sequence_name)
    value = await next_value(db, sequence_name)
    return format_document_number(
        DOCUMENT_SEQUENCES[sequence_name],
        value,
        year if year is not None else date.today().year,
    )


async def generate_po_number(db: AsyncSession) -> str:
    return await generate_document_number(db, PO_NUMBER_SEQ)


async def generate_qc_lot_number(db: AsyncSession) -> str:
    return await generate_document_number(db, QC_LOT_NUMBER_SEQ)


async def generate_receipt_number(db: AsyncSession) -> str:
    return await generate_document_number(db, RECEIPT_NUMBER_SEQ)
