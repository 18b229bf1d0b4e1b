from __future__ import annotations

from decimal import Decimal

from domain.base_types import USD_DECIMALS


def format_decimal(value: Decimal) -> str:
    quantized = value.normalize()
    # Avoid scientific notation for integers.
    if quantized == quantized.to_integral():
        return f"{quantized:.0f}"
    return format(quantized, "f")


def format_units(amount: int, decimals: int) -> str:
    return format_decimal(Decimal(amount).scaleb(-decimals))


def format_usd(value: int) -> str:
    cents = Decimal(value).scaleb(-USD_DECIMALS).quantize(Decimal("0.01"))
    return f"{cents:.2f}"
