from decimal import Decimal

from fastapi import HTTPException
from stockledger.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.detail}"


# =====================================================
# STOCK LEDGER
# =====================================================
class InvalidMovementError(AppException):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(400, message, ErrorCode.VALIDATION_ERROR, details)


class InsufficientStockError(AppException):
    """The requested decrement would take a balance below zero."""

    def __init__(self, key, available: Decimal, requested: Decimal):
        super().__init__(
            409,
            f"Insufficient stock for {key}. Available: {available}, requested: {requested}",
            ErrorCode.INSUFFICIENT_STOCK,
            {
                "key": key.as_dict(),
                "available": str(available),
                "requested": str(requested),
            },
        )
        self.key = key
        self.available = available
        self.requested = requested


class LockTimeoutError(AppException):
    """A balance row lock was not granted in time. The transaction must be retried as a whole."""

    def __init__(self, message: str = "Timed out waiting for a stock balance lock"):
        super().__init__(503, message, ErrorCode.LOCK_TIMEOUT)


class ReferentialViolationError(AppException):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(422, message, ErrorCode.REFERENTIAL_VIOLATION, details)


class ImmutableMovementError(AppException):
    def __init__(self, movement_id: int | None):
        super().__init__(
            500,
            f"Stock movement {movement_id} is immutable; post an offsetting movement instead",
            ErrorCode.IMMUTABLE_RECORD,
            {"movement_id": movement_id},
        )


# =====================================================
# DOCUMENT SEQUENCES
# =====================================================
class UnknownSequenceError(AppException):
    def __init__(self, sequence_name: str):
        super().__init__(
            400,
            f"Unknown document sequence '{sequence_name}'",
            ErrorCode.UNKNOWN_SEQUENCE,
            {"sequence_name": sequence_name},
        )


class SequenceExhaustedError(AppException):
    def __init__(self, sequence_name: str):
        super().__init__(
            500,
            f"Document sequence '{sequence_name}' has exhausted its range",
            ErrorCode.SEQUENCE_EXHAUSTED,
            {"sequence_name": sequence_name},
        )
