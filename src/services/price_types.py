from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal

from domain.base_types import PRICE_DECIMALS

_PRICE_SCALE = Decimal(10) ** PRICE_DECIMALS


class PriceFeedError(Exception):
    """A feed could not produce a reading."""


def to_fixed_point(value: Decimal) -> int:
    """Decimal price to the 8-implied-decimals integer form, rounding toward zero."""
    return int((value * _PRICE_SCALE).to_integral_value(rounding=ROUND_FLOOR))


__all__ = ["PriceFeedError", "to_fixed_point"]
