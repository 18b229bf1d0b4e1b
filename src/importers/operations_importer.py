from __future__ import annotations

import logging
from csv import DictReader
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, field_validator, model_validator

from domain.base_types import AssetId, FeedId

logger = logging.getLogger(__name__)


class OperationAction(StrEnum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    SUPPORT = "support"
    UNSUPPORT = "unsupport"
    SET_FEED = "set_feed"
    SET_NATIVE_FEED = "set_native_feed"


_NEEDS_ASSET = {
    OperationAction.DEPOSIT,
    OperationAction.WITHDRAW,
    OperationAction.SUPPORT,
    OperationAction.UNSUPPORT,
    OperationAction.SET_FEED,
}
_NEEDS_FEED = {OperationAction.SET_FEED, OperationAction.SET_NATIVE_FEED}


class VaultOperation(BaseModel):
    """One row of an operations CSV: ``action,caller,asset,amount,feed``."""

    action: OperationAction
    caller: str
    asset: AssetId | None = None
    amount: int = 0
    feed: FeedId | None = None

    @field_validator("action", mode="before")
    @classmethod
    def _lower_action(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("asset", "feed", mode="before")
    @classmethod
    def _empty_to_none(cls, value: str | None) -> str | None:
        if value is None or value.strip() == "":
            return None
        return value.strip()

    @field_validator("amount", mode="before")
    @classmethod
    def _empty_amount(cls, value: str | int) -> str | int:
        if value == "" or value is None:
            return 0
        return value

    @model_validator(mode="after")
    def _validate_fields(self) -> VaultOperation:
        if not self.caller:
            raise ValueError("caller must be non-empty")
        if self.action in _NEEDS_ASSET and self.asset is None:
            raise ValueError(f"{self.action} requires an asset")
        if self.action in _NEEDS_FEED and self.feed is None:
            raise ValueError(f"{self.action} requires a feed")
        return self


class OperationsImporter:
    def __init__(self, source_path: str | Path) -> None:
        self._source_path = Path(source_path)

    def load_operations(self) -> list[VaultOperation]:
        operations: list[VaultOperation] = []
        with self._source_path.open(encoding="utf-8") as handle:
            reader = DictReader(handle)
            for row in reader:
                operations.append(VaultOperation.model_validate(row))
        logger.info("Loaded %d operations from %s", len(operations), self._source_path)
        return operations


__all__ = ["OperationAction", "OperationsImporter", "VaultOperation"]
