from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import NewType
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, model_validator

from .base_types import AssetId, FeedId, UserId

VaultEventId = NewType("VaultEventId", UUID)


class VaultEventType(StrEnum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    ASSET_SUPPORTED = "ASSET_SUPPORTED"
    ASSET_UNSUPPORTED = "ASSET_UNSUPPORTED"
    FEED_UPDATED = "FEED_UPDATED"
    NATIVE_FEED_UPDATED = "NATIVE_FEED_UPDATED"


_BALANCE_EVENTS = {VaultEventType.DEPOSIT, VaultEventType.WITHDRAWAL}


class VaultEvent(BaseModel):
    """Record emitted after a committed vault state change.

    ``user_id`` is the depositor/withdrawer for balance events and the admin
    caller for registry events. ``usd_value`` has 6 implied decimals.
    """

    id: VaultEventId = VaultEventId(Field(default_factory=uuid4))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: VaultEventType
    user_id: UserId
    asset_id: AssetId
    amount: int = 0
    usd_value: int = 0
    feed_id: FeedId | None = None

    @model_validator(mode="after")
    def _validate_fields(self) -> VaultEvent:
        if self.event_type in _BALANCE_EVENTS and self.amount <= 0:
            raise ValueError(f"{self.event_type} event must carry a positive amount")
        if self.amount < 0 or self.usd_value < 0:
            raise ValueError("amount and usd_value must be >= 0")
        return self


__all__ = ["VaultEvent", "VaultEventId", "VaultEventType"]
