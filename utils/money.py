"""Currency rounding shared by every calculation"""
from decimal import Decimal, ROUND_HALF_UP

from config.settings import AMOUNT_PRECISION

TWO_PLACES = Decimal(1).scaleb(-AMOUNT_PRECISION)


def round_money(value: float) -> float:
    """Round half-up to currency precision: 1594.985 -> 1594.99"""
    return float(Decimal(repr(float(value))).quantize(TWO_PLACES, ROUND_HALF_UP))


def monthly_rate(annual_rate: float) -> float:
    """Annual percentage rate -> monthly decimal rate"""
    return annual_rate / 100 / 12
