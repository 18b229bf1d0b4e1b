from __future__ import annotations

from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from .base_types import AssetId, UserId
from .errors import InsufficientBalance


@dataclass(frozen=True)
class UserStats:
    deposit_count: int = 0
    withdrawal_count: int = 0


@dataclass(frozen=True)
class _Change:
    user_id: UserId
    asset_id: AssetId
    balance_delta: int
    usd_delta: int
    deposit_delta: int = 0
    withdrawal_delta: int = 0


class BalanceLedger:
    """Per (user, asset) balances plus the aggregate USD total they account for.

    Each entry remembers the USD value credited to it; the aggregate is the sum
    of those values and moves only by the amount an entry gains or releases.
    """

    def __init__(self) -> None:
        self._balances: dict[UserId, dict[AssetId, int]] = defaultdict(lambda: defaultdict(int))
        self._entry_usd: dict[UserId, dict[AssetId, int]] = defaultdict(lambda: defaultdict(int))
        self._deposit_counts: dict[UserId, int] = defaultdict(int)
        self._withdrawal_counts: dict[UserId, int] = defaultdict(int)
        self._total_usd = 0
        self._journals: list[list[_Change]] = []

    def apply_deposit(self, *, user_id: UserId, asset_id: AssetId, amount: int, usd_value: int) -> None:
        self._apply(
            _Change(
                user_id=user_id,
                asset_id=asset_id,
                balance_delta=amount,
                usd_delta=usd_value,
                deposit_delta=1,
            )
        )

    def apply_withdrawal(self, *, user_id: UserId, asset_id: AssetId, amount: int, usd_value: int) -> None:
        available = self.get_balance(user_id=user_id, asset_id=asset_id)
        if available < amount:
            raise InsufficientBalance(user_id=user_id, asset_id=asset_id, requested=amount, available=available)
        self._apply(
            _Change(
                user_id=user_id,
                asset_id=asset_id,
                balance_delta=-amount,
                usd_delta=-usd_value,
                withdrawal_delta=1,
            )
        )

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Undo every change made inside the block when it raises."""
        journal: list[_Change] = []
        self._journals.append(journal)
        try:
            yield
        except BaseException:
            for change in reversed(journal):
                self._write(self._inverse(change))
            raise
        finally:
            self._journals.pop()

    def get_balance(self, *, user_id: UserId, asset_id: AssetId) -> int:
        return self._balances.get(user_id, {}).get(asset_id, 0)

    def has_available(self, *, user_id: UserId, asset_id: AssetId, amount: int) -> bool:
        return self.get_balance(user_id=user_id, asset_id=asset_id) >= amount

    def entry_usd(self, *, user_id: UserId, asset_id: AssetId) -> int:
        return self._entry_usd.get(user_id, {}).get(asset_id, 0)

    @property
    def total_usd(self) -> int:
        return self._total_usd

    def holdings(self, user_id: UserId) -> dict[AssetId, int]:
        return {asset_id: amount for asset_id, amount in self._balances.get(user_id, {}).items() if amount > 0}

    def positions(self) -> Iterator[tuple[UserId, AssetId, int]]:
        for user_id, balances in self._balances.items():
            for asset_id, amount in balances.items():
                if amount > 0:
                    yield user_id, asset_id, amount

    def stats(self, user_id: UserId) -> UserStats:
        return UserStats(
            deposit_count=self._deposit_counts.get(user_id, 0),
            withdrawal_count=self._withdrawal_counts.get(user_id, 0),
        )

    def _apply(self, change: _Change) -> None:
        self._write(change)
        if self._journals:
            self._journals[-1].append(change)

    def _write(self, change: _Change) -> None:
        new_balance = self._balances[change.user_id][change.asset_id] + change.balance_delta
        if new_balance < 0:
            raise InsufficientBalance(
                user_id=change.user_id,
                asset_id=change.asset_id,
                requested=-change.balance_delta,
                available=self._balances[change.user_id][change.asset_id],
            )
        self._balances[change.user_id][change.asset_id] = new_balance
        self._entry_usd[change.user_id][change.asset_id] += change.usd_delta
        self._total_usd += change.usd_delta
        self._deposit_counts[change.user_id] += change.deposit_delta
        self._withdrawal_counts[change.user_id] += change.withdrawal_delta

    @staticmethod
    def _inverse(change: _Change) -> _Change:
        return _Change(
            user_id=change.user_id,
            asset_id=change.asset_id,
            balance_delta=-change.balance_delta,
            usd_delta=-change.usd_delta,
            deposit_delta=-change.deposit_delta,
            withdrawal_delta=-change.withdrawal_delta,
        )


__all__ = ["BalanceLedger", "UserStats"]
