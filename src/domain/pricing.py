from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from .base_types import FeedId


@dataclass(frozen=True)
class PriceReading:
    """Latest answer of a price feed.

    ``price`` is fixed point with 8 implied decimals. ``updated_at`` is the
    feed's own freshness signal, ``None`` when the feed does not report one.
    """

    feed_id: FeedId
    price: int
    updated_at: datetime | None = None


class PriceFeedService(Protocol):
    """Lookup interface for the latest price behind a feed handle."""

    def latest_price(self, feed_id: FeedId) -> PriceReading: ...
