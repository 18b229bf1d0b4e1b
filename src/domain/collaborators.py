from __future__ import annotations

from typing import Protocol

from .base_types import AssetId, UserId


class AdminGate(Protocol):
    def has_admin_capability(self, caller: str) -> bool: ...


class AssetTransfer(Protocol):
    """Moves asset value between users and the vault's custody.

    Only a literal ``True`` return value is a successful transfer. ``False``,
    ``None`` or a raised exception are all failures.
    """

    def transfer_in(self, asset_id: AssetId, sender: UserId, amount: int) -> bool | None: ...

    def transfer_out(self, asset_id: AssetId, recipient: UserId, amount: int) -> bool | None: ...

    def decimals(self, asset_id: AssetId) -> int: ...


__all__ = ["AdminGate", "AssetTransfer"]
