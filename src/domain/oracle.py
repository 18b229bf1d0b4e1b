from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from .base_types import NATIVE_DECIMALS, AssetId, FeedId, is_native
from .collaborators import AssetTransfer
from .decimals import to_usd
from .errors import InvalidPrice, OracleNotConfigured, PriceUnavailable, StalePrice
from .pricing import PriceFeedService
from .registry import AssetRegistry

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PriceOracle:
    """Resolve the USD price (8 implied decimals) of native and secondary assets.

    Readings are passed through as reported. When ``max_price_age`` is set,
    readings older than the window are rejected.
    """

    def __init__(
        self,
        *,
        feed_service: PriceFeedService,
        registry: AssetRegistry,
        transfer: AssetTransfer,
        native_feed: FeedId,
        max_price_age: timedelta | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._feed_service = feed_service
        self._registry = registry
        self._transfer = transfer
        self._native_feed = native_feed
        self._max_price_age = max_price_age
        self._clock = clock

    @property
    def native_feed(self) -> FeedId:
        return self._native_feed

    def rebind_native_feed(self, feed_id: FeedId) -> None:
        self._native_feed = feed_id

    def feed_of(self, asset_id: AssetId) -> FeedId:
        if is_native(asset_id):
            return self._native_feed
        feed_id = self._registry.feed_for(asset_id)
        if feed_id is None:
            raise OracleNotConfigured(asset_id=asset_id)
        return feed_id

    def has_feed(self, asset_id: AssetId) -> bool:
        return is_native(asset_id) or self._registry.feed_for(asset_id) is not None

    def price_of(self, asset_id: AssetId) -> int:
        feed_id = self.feed_of(asset_id)
        try:
            reading = self._feed_service.latest_price(feed_id)
        except Exception as exc:
            logger.warning("Feed %s failed: %r", feed_id, exc)
            raise PriceUnavailable(feed_id=feed_id, reason=repr(exc)) from exc
        if reading.price <= 0:
            raise InvalidPrice(feed_id=feed_id, price=reading.price)
        if self._max_price_age is not None and reading.updated_at is not None:
            age = self._clock() - reading.updated_at
            if age > self._max_price_age:
                logger.warning("Feed %s reading is stale (%s old)", feed_id, age)
                raise StalePrice(
                    feed_id=feed_id,
                    age_seconds=age.total_seconds(),
                    max_age_seconds=self._max_price_age.total_seconds(),
                )
        return reading.price

    def decimals_of(self, asset_id: AssetId) -> int:
        if is_native(asset_id):
            return NATIVE_DECIMALS
        return self._transfer.decimals(asset_id)

    def usd_value(self, asset_id: AssetId, amount: int) -> int:
        if amount == 0:
            return 0
        return to_usd(amount, self.decimals_of(asset_id), self.price_of(asset_id))

    def usd_change(self, asset_id: AssetId, *, before: int, after: int) -> int:
        """USD value of moving a holding from ``before`` to ``after`` units, read at one price.

        Under a fixed price, the changes applied over a holding's history sum
        to the value of its current balance.
        """
        if before == after:
            return 0
        decimals = self.decimals_of(asset_id)
        price = self.price_of(asset_id)
        return to_usd(after, decimals, price) - to_usd(before, decimals, price)


__all__ = ["PriceOracle", "utc_now"]
