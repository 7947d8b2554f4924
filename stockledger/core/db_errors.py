# stockledger/core/db_errors.py
#
# Classifies driver errors by SQLSTATE (PostgreSQL) or message (SQLite).

from sqlalchemy.exc import DBAPIError

LOCK_NOT_AVAILABLE = "55P03"
QUERY_CANCELED = "57014"
FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"
SEQUENCE_GENERATOR_LIMIT_EXCEEDED = "2200H"


def sqlstate(exc: DBAPIError) -> str | None:
    orig = getattr(exc, "orig", None)
    for attr in ("pgcode", "sqlstate"):
        code = getattr(orig, attr, None)
        if code:
            return code
    # asyncpg errors are wrapped by the SQLAlchemy adapter
    return getattr(getattr(orig, "__cause__", None), "sqlstate", None)


def _message(exc: DBAPIError) -> str:
    return str(getattr(exc, "orig", exc)).lower()


def is_lock_timeout(exc: DBAPIError) -> bool:
    if sqlstate(exc) in {LOCK_NOT_AVAILABLE, QUERY_CANCELED}:
        return True
    return "database is locked" in _message(exc)


def is_foreign_key_violation(exc: DBAPIError) -> bool:
    code = sqlstate(exc)
    if code:
        return code == FOREIGN_KEY_VIOLATION
    return "foreign key constraint failed" in _message(exc)


def is_unique_violation(exc: DBAPIError) -> bool:
    code = sqlstate(exc)
    if code:
        return code == UNIQUE_VIOLATION
    return "unique constraint failed" in _message(exc)


def is_sequence_exhausted(exc: DBAPIError) -> bool:
    return sqlstate(exc) == SEQUENCE_GENERATOR_LIMIT_EXCEEDED
