"""Decimal helpers for money amounts."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

MoneyLike = Union[Decimal, int, str, float]


def to_money(value: MoneyLike) -> Decimal:
    """Quantize a value to two decimal places.

    Floats are converted through ``str`` so ``0.1`` becomes ``Decimal("0.10")``
    rather than its binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValueError(f"invalid money amount: {value!r}") from exc


def to_minor_units(value: MoneyLike) -> int:
    """Convert an amount to integer minor units (cents)."""
    return int((to_money(value) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def percent_of(amount: MoneyLike, percent: MoneyLike) -> Decimal:
    return to_money(to_money(amount) * Decimal(str(percent)) / Decimal(100))


__all__ = ["CENT", "ZERO", "MoneyLike", "percent_of", "to_minor_units", "to_money"]
