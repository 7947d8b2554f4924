# stockledger/constants/error_codes.py

from enum import Enum


class ErrorCode(str, Enum):
    # generic
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # stock ledger
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    LOCK_TIMEOUT = "LOCK_TIMEOUT"
    REFERENTIAL_VIOLATION = "REFERENTIAL_VIOLATION"
    IMMUTABLE_RECORD = "IMMUTABLE_RECORD"

    # document sequences
    UNKNOWN_SEQUENCE = "UNKNOWN_SEQUENCE"
    SEQUENCE_EXHAUSTED = "SEQUENCE_EXHAUSTED"
