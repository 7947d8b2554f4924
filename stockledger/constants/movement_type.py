# stockledger/constants/movement_type.py

from enum import Enum


class MovementType(str, Enum):
    RECEIPT = "RECEIPT"
    ISSUE = "ISSUE"
    TRANSFER = "TRANSFER"
    ADJUSTMENT = "ADJUSTMENT"


# sign each movement type is allowed to carry through adjust_stock
POSITIVE_MOVEMENTS = {MovementType.RECEIPT}
NEGATIVE_MOVEMENTS = {MovementType.ISSUE}
SIGNED_MOVEMENTS = {MovementType.ADJUSTMENT}
