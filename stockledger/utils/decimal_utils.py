# stockledger/utils/decimal_utils.py
from decimal import Decimal, ROUND_HALF_UP

QUANTITY_PLACES = Decimal("0.0001")


def to_quantity(value) -> Decimal:
    if value is None:
        return Decimal("0").quantize(QUANTITY_PLACES)
    if isinstance(value, float):
        value = str(value)
    if not isinstance(value, Decimal):
        value = Decimal(value)
    return value.quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)
