import pytest
from pydantic import ValidationError

from domain.base_types import AssetId, UserId
from domain.events import VaultEvent, VaultEventType


def test_balance_events_need_positive_amount() -> None:
    with pytest.raises(ValidationError):
        VaultEvent(event_type=VaultEventType.DEPOSIT, user_id=UserId("alice"), asset_id=AssetId("USDC"))


def test_negative_usd_value_is_rejected() -> None:
    with pytest.raises(ValidationError):
        VaultEvent(
            event_type=VaultEventType.WITHDRAWAL,
            user_id=UserId("alice"),
            asset_id=AssetId("USDC"),
            amount=1,
            usd_value=-1,
        )


def test_registry_events_carry_no_amount() -> None:
    event = VaultEvent(event_type=VaultEventType.ASSET_UNSUPPORTED, user_id=UserId("admin"), asset_id=AssetId("USDC"))

    assert event.amount == 0
    assert event.feed_id is None
    assert event.timestamp.tzinfo is not None
