"""
Money and time helpers shared by the services.
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")

# Balances within this distance of zero count as settled.
EPSILON = Decimal("0.01")


def to_decimal(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """Coerce a numeric value to Decimal without binary float artefacts."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """Round to two decimal places, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
