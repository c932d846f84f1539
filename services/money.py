"""Decimal helpers shared by the ledger services."""
from decimal import Decimal, ROUND_HALF_UP

from config import AMOUNT_TOLERANCE

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
     """Quantize to two decimal places (half-up). None counts as zero."""
     if value is None:
          return ZERO
     if not isinstance(value, Decimal):
          value = Decimal(str(value))
     return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values) -> Decimal:
     return sum((to_money(v) for v in values), ZERO)


def amounts_match(left, right, tolerance: Decimal = AMOUNT_TOLERANCE) -> bool:
     return abs(to_money(left) - to_money(right)) <= tolerance
