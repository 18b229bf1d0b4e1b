from __future__ import annotations

from .base_types import PRICE_DECIMALS, USD_DECIMALS


def normalize(amount: int, source_decimals: int) -> int:
    """Convert ``amount`` from ``source_decimals`` precision to the 6-decimal canonical unit.

    Scaling down floors, so sub-unit precision is dropped:
    ``normalize(1_234_567, 7) == 123_456``.
    """
    if source_decimals > USD_DECIMALS:
        return amount // 10 ** (source_decimals - USD_DECIMALS)
    if source_decimals < USD_DECIMALS:
        return amount * 10 ** (USD_DECIMALS - source_decimals)
    return amount


def to_usd(amount: int, source_decimals: int, price: int) -> int:
    """USD value (6 decimals) of ``amount`` priced at ``price`` (8 implied decimals)."""
    return normalize(amount, source_decimals) * price // 10**PRICE_DECIMALS


__all__ = ["normalize", "to_usd"]
