from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from .errors import CapacityExceeded, WithdrawalLimitExceeded


class CapacityGuard:
    """USD capacity of the whole vault and native-unit cap of a single withdrawal.

    The withdrawal cap is expressed in native units, so callers apply it to
    native-asset withdrawals only.

    Capacity claimed by a deposit whose funds are still in flight counts as
    used until the deposit commits or fails.
    """

    def __init__(self, *, max_total_usd: int, max_withdrawal: int) -> None:
        self.max_total_usd = max_total_usd
        self.max_withdrawal = max_withdrawal
        self._pending_usd = 0

    @property
    def pending_usd(self) -> int:
        return self._pending_usd

    def check_deposit(self, *, total_usd: int, deposit_usd: int) -> None:
        used = total_usd + self._pending_usd
        if used + deposit_usd > self.max_total_usd:
            raise CapacityExceeded(deposit_usd=deposit_usd, total_usd=used, max_total_usd=self.max_total_usd)

    @contextmanager
    def reserve_deposit(self, *, total_usd: int, deposit_usd: int) -> Iterator[None]:
        self.check_deposit(total_usd=total_usd, deposit_usd=deposit_usd)
        self._pending_usd += deposit_usd
        try:
            yield
        finally:
            self._pending_usd -= deposit_usd

    def check_withdrawal(self, *, amount: int) -> None:
        if amount > self.max_withdrawal:
            raise WithdrawalLimitExceeded(amount=amount, max_withdrawal=self.max_withdrawal)


__all__ = ["CapacityGuard"]
