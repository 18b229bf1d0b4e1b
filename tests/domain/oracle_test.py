from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from domain.base_types import NATIVE_ASSET, FeedId
from domain.errors import InvalidPrice, OracleNotConfigured, PriceUnavailable, StalePrice, VaultError
from domain.oracle import PriceOracle
from domain.registry import AssetRegistry
from services.admin_gate import StaticAdminGate
from services.in_memory_custody import InMemoryCustody
from services.price_types import PriceFeedError
from services.static_price_feed import StaticPriceFeed
from tests.constants import ADMIN, ETH_FEED, ETH_PRICE, ONE_ETH, UNLISTED, USDC, USDC_FEED, USDC_PRICE, WBTC

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def _oracle(feed: StaticPriceFeed, *, max_price_age: timedelta | None = None) -> tuple[PriceOracle, AssetRegistry]:
    registry = AssetRegistry(admin_gate=StaticAdminGate({ADMIN}))
    oracle = PriceOracle(
        feed_service=feed,
        registry=registry,
        transfer=InMemoryCustody(decimals={USDC: 6, WBTC: 8}),
        native_feed=ETH_FEED,
        max_price_age=max_price_age,
        clock=lambda: NOW,
    )
    return oracle, registry


def test_native_price_comes_from_native_feed(price_feed: StaticPriceFeed) -> None:
    oracle, _ = _oracle(price_feed)

    assert oracle.price_of(NATIVE_ASSET) == ETH_PRICE
    assert oracle.usd_value(NATIVE_ASSET, ONE_ETH) == 2_000_000_000


def test_secondary_price_follows_registry_binding(price_feed: StaticPriceFeed) -> None:
    oracle, registry = _oracle(price_feed)
    registry.support(ADMIN, USDC, USDC_FEED)

    assert oracle.price_of(USDC) == USDC_PRICE
    assert oracle.usd_value(USDC, 2_500_000) == 2_500_000

    registry.unsupport(ADMIN, USDC)
    with pytest.raises(OracleNotConfigured):
        oracle.price_of(USDC)


def test_missing_feed_binding_is_rejected(price_feed: StaticPriceFeed) -> None:
    oracle, registry = _oracle(price_feed)
    registry.support(ADMIN, WBTC)

    assert not oracle.has_feed(WBTC)
    with pytest.raises(OracleNotConfigured):
        oracle.price_of(WBTC)
    with pytest.raises(OracleNotConfigured):
        oracle.usd_value(UNLISTED, 1)


def test_rebinding_native_feed(price_feed: StaticPriceFeed) -> None:
    oracle, _ = _oracle(price_feed)
    price_feed.set_price(FeedId("ETH-USD-backup"), 1_900 * 10**8)

    oracle.rebind_native_feed(FeedId("ETH-USD-backup"))

    assert oracle.native_feed == FeedId("ETH-USD-backup")
    assert oracle.price_of(NATIVE_ASSET) == 1_900 * 10**8


def test_non_positive_price_is_rejected(price_feed: StaticPriceFeed) -> None:
    oracle, _ = _oracle(price_feed)
    price_feed.set_price(ETH_FEED, 0)

    with pytest.raises(InvalidPrice):
        oracle.price_of(NATIVE_ASSET)


def test_stale_price_rejected_only_when_window_configured(price_feed: StaticPriceFeed) -> None:
    price_feed.set_price(ETH_FEED, ETH_PRICE, updated_at=NOW - timedelta(minutes=10))

    trusting_oracle, _ = _oracle(price_feed)
    assert trusting_oracle.price_of(NATIVE_ASSET) == ETH_PRICE

    strict_oracle, _ = _oracle(price_feed, max_price_age=timedelta(minutes=5))
    with pytest.raises(StalePrice) as exc_info:
        strict_oracle.price_of(NATIVE_ASSET)
    assert exc_info.value.age_seconds == 600

    price_feed.set_price(ETH_FEED, ETH_PRICE, updated_at=NOW - timedelta(minutes=1))
    assert strict_oracle.price_of(NATIVE_ASSET) == ETH_PRICE


def test_readings_without_timestamp_pass_freshness_check(price_feed: StaticPriceFeed) -> None:
    oracle, _ = _oracle(price_feed, max_price_age=timedelta(seconds=1))

    assert oracle.price_of(NATIVE_ASSET) == ETH_PRICE


def test_zero_amount_needs_no_price() -> None:
    oracle, _ = _oracle(StaticPriceFeed())

    assert oracle.usd_value(NATIVE_ASSET, 0) == 0


def test_usd_change_values_whole_holding(price_feed: StaticPriceFeed) -> None:
    oracle, registry = _oracle(price_feed)
    registry.support(ADMIN, USDC, USDC_FEED)
    price_feed.set_price(USDC_FEED, 150_000_000)

    assert oracle.usd_value(USDC, 1) == 1
    assert oracle.usd_change(USDC, before=1, after=2) == 2
    assert oracle.usd_change(USDC, before=2, after=1) == -2
    assert oracle.usd_change(NATIVE_ASSET, before=10**12 - 1, after=2 * 10**12 - 2) == 2_000


def test_unchanged_holding_needs_no_price() -> None:
    oracle, _ = _oracle(StaticPriceFeed())

    assert oracle.usd_change(NATIVE_ASSET, before=ONE_ETH, after=ONE_ETH) == 0


def test_feed_failure_is_reported_as_vault_error(price_feed: StaticPriceFeed) -> None:
    oracle, registry = _oracle(price_feed)
    registry.support(ADMIN, WBTC, FeedId("WBTC-USD-missing"))

    with pytest.raises(PriceUnavailable) as exc_info:
        oracle.price_of(WBTC)

    assert isinstance(exc_info.value, VaultError)
    assert isinstance(exc_info.value.__cause__, PriceFeedError)
    assert exc_info.value.feed_id == "WBTC-USD-missing"
