from __future__ import annotations

from typing import NewType

AssetId = NewType("AssetId", str)
UserId = NewType("UserId", str)
FeedId = NewType("FeedId", str)

# Reserved identifier of the native asset. It is also the "no asset" sentinel:
# it can never be registered as a secondary asset.
NATIVE_ASSET = AssetId("NATIVE")
NATIVE_DECIMALS = 18

USD_DECIMALS = 6
PRICE_DECIMALS = 8


def is_native(asset: AssetId) -> bool:
    return asset == NATIVE_ASSET


__all__ = [
    "NATIVE_ASSET",
    "NATIVE_DECIMALS",
    "PRICE_DECIMALS",
    "USD_DECIMALS",
    "AssetId",
    "FeedId",
    "UserId",
    "is_native",
]
