from typing import Any, Callable, Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base
from domain.base_types import NATIVE_ASSET
from domain.vault import Vault, VaultConfig
from services.admin_gate import StaticAdminGate
from services.in_memory_custody import InMemoryCustody
from services.static_price_feed import StaticPriceFeed
from tests.constants import (
    ADMIN,
    ALICE,
    BOB,
    DAI,
    DAI_FEED,
    DAI_PRICE,
    ETH_FEED,
    ETH_PRICE,
    MAX_TOTAL_USD,
    MAX_WITHDRAWAL,
    ONE_ETH,
    USDC,
    USDC_FEED,
    USDC_PRICE,
    WBTC,
    WBTC_FEED,
    WBTC_PRICE,
)

engine: Engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})
session_factory = sessionmaker(engine)


@pytest.fixture(scope="function")
def test_session() -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture(scope="function", autouse=True)
def reset_db() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def price_feed() -> StaticPriceFeed:
    return StaticPriceFeed(
        {
            ETH_FEED: ETH_PRICE,
            USDC_FEED: USDC_PRICE,
            WBTC_FEED: WBTC_PRICE,
            DAI_FEED: DAI_PRICE,
        }
    )


@pytest.fixture(scope="function")
def custody() -> InMemoryCustody:
    custody = InMemoryCustody(decimals={USDC: 6, WBTC: 8, DAI: 18})
    for user in (ALICE, BOB):
        custody.fund(user, NATIVE_ASSET, 100 * ONE_ETH)
        custody.fund(user, USDC, 1_000_000 * 10**6)
        custody.fund(user, WBTC, 10 * 10**8)
        custody.fund(user, DAI, 1_000_000 * 10**18)
    return custody


@pytest.fixture(scope="function")
def vault_factory(custody: InMemoryCustody, price_feed: StaticPriceFeed) -> Callable[..., Vault]:
    def _make(**overrides: Any) -> Vault:
        params: dict[str, Any] = {
            "max_withdrawal": MAX_WITHDRAWAL,
            "max_total_usd": MAX_TOTAL_USD,
            "native_feed": ETH_FEED,
        }
        clock = overrides.pop("clock", None)
        params.update(overrides)
        vault_kwargs: dict[str, Any] = {} if clock is None else {"clock": clock}
        vault = Vault(
            config=VaultConfig(**params),
            admin_gate=StaticAdminGate({ADMIN}),
            transfer=custody,
            feed_service=price_feed,
            **vault_kwargs,
        )
        vault.support_asset(ADMIN, USDC, USDC_FEED)
        vault.support_asset(ADMIN, WBTC, WBTC_FEED)
        vault.support_asset(ADMIN, DAI, DAI_FEED)
        vault.drain_events()
        return vault

    return _make


@pytest.fixture(scope="function")
def vault(vault_factory: Callable[..., Vault]) -> Vault:
    return vault_factory()
