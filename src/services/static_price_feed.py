from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Mapping

from domain.base_types import FeedId
from domain.pricing import PriceFeedService, PriceReading

from .price_types import PriceFeedError, to_fixed_point


class StaticPriceFeed(PriceFeedService):
    """Feed answering from an in-memory table of 8-decimal prices."""

    def __init__(self, prices: Mapping[FeedId, int] | None = None, *, updated_at: datetime | None = None) -> None:
        self._readings: dict[FeedId, PriceReading] = {
            feed_id: PriceReading(feed_id=feed_id, price=price, updated_at=updated_at)
            for feed_id, price in (prices or {}).items()
        }

    def set_price(self, feed_id: FeedId, price: int, *, updated_at: datetime | None = None) -> None:
        self._readings[feed_id] = PriceReading(feed_id=feed_id, price=price, updated_at=updated_at)

    def latest_price(self, feed_id: FeedId) -> PriceReading:
        try:
            return self._readings[feed_id]
        except KeyError as exc:
            msg = f"No price recorded for feed {feed_id}"
            raise PriceFeedError(msg) from exc

    @classmethod
    def from_json(cls, path: Path) -> StaticPriceFeed:
        """Load ``{"ETH-USD": "2000.00", ...}`` with human-readable decimal prices."""
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            msg = "Price file must contain a JSON object of feed -> price."
            raise ValueError(msg)
        return cls({FeedId(str(feed)): to_fixed_point(Decimal(str(price))) for feed, price in payload.items()})


__all__ = ["StaticPriceFeed"]
