from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Mapping

from domain.base_types import NATIVE_ASSET, NATIVE_DECIMALS, AssetId, UserId
from domain.collaborators import AssetTransfer

logger = logging.getLogger(__name__)

VAULT_ACCOUNT = UserId("vault")

TransferHook = Callable[[AssetId, UserId, int], None]


class ExternalBalanceError(Exception):
    def __init__(
        self,
        *,
        asset_id: str,
        account: str,
        attempted_quantity: int,
        available_balance: int,
    ) -> None:
        self.asset_id = asset_id
        self.account = account
        self.attempted_quantity = attempted_quantity
        self.available_balance = available_balance
        message = (
            f"Insufficient external balance for asset={asset_id} account={account} "
            f"attempted={attempted_quantity} available={available_balance}"
        )
        super().__init__(message)


class ExternalWalletBook:
    """Integer holdings of accounts outside the vault ledger, including the vault's own custody."""

    def __init__(self) -> None:
        self._balances: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))

    def apply_movement(self, *, asset_id: str, account: str, quantity: int) -> None:
        current_balance = self._balances[asset_id][account]
        new_balance = current_balance + quantity
        if new_balance < 0:
            raise ExternalBalanceError(
                asset_id=asset_id,
                account=account,
                attempted_quantity=quantity,
                available_balance=current_balance,
            )
        self._balances[asset_id][account] = new_balance

    def move(self, *, asset_id: str, source: str, destination: str, quantity: int) -> None:
        self.apply_movement(asset_id=asset_id, account=source, quantity=-quantity)
        self.apply_movement(asset_id=asset_id, account=destination, quantity=quantity)

    def get_balance(self, *, asset_id: str, account: str) -> int:
        return self._balances[asset_id][account]

    def has_available(self, *, asset_id: str, account: str, quantity: int) -> bool:
        return self._balances[asset_id][account] >= quantity


class InMemoryCustody(AssetTransfer):
    """Asset transfers between users' external wallets and the vault's custody account.

    A transfer the source account cannot cover reports ``False``. ``on_transfer_out``
    runs after the payout reached the recipient, the way a recipient contract's
    receive hook would; if it raises, the payout is reversed and the error propagates.
    """

    def __init__(
        self,
        *,
        decimals: Mapping[AssetId, int] | None = None,
        default_decimals: int = 18,
        vault_account: UserId = VAULT_ACCOUNT,
    ) -> None:
        self.wallets = ExternalWalletBook()
        self.vault_account = vault_account
        self.on_transfer_out: TransferHook | None = None
        self._decimals = dict(decimals or {})
        self._default_decimals = default_decimals

    def fund(self, account: UserId, asset_id: AssetId, amount: int) -> None:
        self.wallets.apply_movement(asset_id=asset_id, account=account, quantity=amount)

    def transfer_in(self, asset_id: AssetId, sender: UserId, amount: int) -> bool:
        if not self.wallets.has_available(asset_id=asset_id, account=sender, quantity=amount):
            logger.info("Custody refused transfer in of %s %s from %s", amount, asset_id, sender)
            return False
        self.wallets.move(asset_id=asset_id, source=sender, destination=self.vault_account, quantity=amount)
        return True

    def transfer_out(self, asset_id: AssetId, recipient: UserId, amount: int) -> bool:
        if not self.wallets.has_available(asset_id=asset_id, account=self.vault_account, quantity=amount):
            logger.info("Custody refused transfer out of %s %s to %s", amount, asset_id, recipient)
            return False
        self.wallets.move(asset_id=asset_id, source=self.vault_account, destination=recipient, quantity=amount)
        if self.on_transfer_out is not None:
            try:
                self.on_transfer_out(asset_id, recipient, amount)
            except Exception:
                self.wallets.move(asset_id=asset_id, source=recipient, destination=self.vault_account, quantity=amount)
                raise
        return True

    def decimals(self, asset_id: AssetId) -> int:
        if asset_id == NATIVE_ASSET:
            return NATIVE_DECIMALS
        return self._decimals.get(asset_id, self._default_decimals)

    def set_decimals(self, asset_id: AssetId, decimals: int) -> None:
        self._decimals[asset_id] = decimals


__all__ = ["VAULT_ACCOUNT", "ExternalBalanceError", "ExternalWalletBook", "InMemoryCustody"]
