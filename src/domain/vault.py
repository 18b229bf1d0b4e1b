from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from threading import RLock
from typing import Callable

from .balance_ledger import BalanceLedger, UserStats
from .base_types import NATIVE_ASSET, AssetId, FeedId, UserId, is_native
from .capacity import CapacityGuard
from .collaborators import AdminGate, AssetTransfer
from .errors import (
    AssetNotSupported,
    DirectTransferNotAllowed,
    InsufficientBalance,
    InvalidAmount,
    InvalidConfiguration,
    InvalidOracle,
    TransferFailed,
)
from .events import VaultEvent, VaultEventType
from .oracle import PriceOracle, utc_now
from .pricing import PriceFeedService
from .registry import AssetRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VaultConfig:
    """Limits fixed for the lifetime of a vault.

    ``max_withdrawal`` is in native-asset units and caps native withdrawals
    only. ``max_total_usd`` is in the 6-decimal USD unit.
    """

    max_withdrawal: int
    max_total_usd: int
    native_feed: FeedId
    max_price_age: timedelta | None = None


class Vault:
    """Custodial multi-asset ledger: deposits, withdrawals and asset administration.

    Every mutating call runs to completion under one re-entrant lock and either
    commits in full or leaves no trace. Withdrawals commit their ledger effects
    before paying out, so a call re-entering from the payout sees the
    decremented balance.
    """

    def __init__(
        self,
        *,
        config: VaultConfig,
        admin_gate: AdminGate,
        transfer: AssetTransfer,
        feed_service: PriceFeedService,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._validate_config(config)
        for name, collaborator in (("admin_gate", admin_gate), ("transfer", transfer), ("feed_service", feed_service)):
            if collaborator is None:
                raise InvalidConfiguration(f"{name} must be provided", field=name)

        self._config = config
        self._transfer = transfer
        self._lock = RLock()
        self._registry = AssetRegistry(admin_gate=admin_gate)
        self._oracle = PriceOracle(
            feed_service=feed_service,
            registry=self._registry,
            transfer=transfer,
            native_feed=config.native_feed,
            max_price_age=config.max_price_age,
            clock=clock,
        )
        self._guard = CapacityGuard(max_total_usd=config.max_total_usd, max_withdrawal=config.max_withdrawal)
        self._ledger = BalanceLedger()
        self._events: list[VaultEvent] = []

    @property
    def config(self) -> VaultConfig:
        return self._config

    # Deposit / withdraw

    def deposit(self, user_id: UserId, asset_id: AssetId, amount: int) -> VaultEvent:
        with self._lock:
            if amount <= 0:
                raise InvalidAmount(amount=amount)
            if not is_native(asset_id) and not self._registry.is_supported(asset_id):
                raise AssetNotSupported(asset_id=asset_id)

            held = self._ledger.get_balance(user_id=user_id, asset_id=asset_id)
            usd_value = self._oracle.usd_change(asset_id, before=held, after=held + amount)
            with self._guard.reserve_deposit(total_usd=self._ledger.total_usd, deposit_usd=usd_value):
                self._transfer_in(asset_id, user_id, amount)
                self._ledger.apply_deposit(user_id=user_id, asset_id=asset_id, amount=amount, usd_value=usd_value)

            logger.info("Deposit user=%s asset=%s amount=%s usd=%s", user_id, asset_id, amount, usd_value)
            return self._emit(
                VaultEvent(
                    event_type=VaultEventType.DEPOSIT,
                    user_id=user_id,
                    asset_id=asset_id,
                    amount=amount,
                    usd_value=usd_value,
                )
            )

    def deposit_native(self, user_id: UserId, value: int) -> VaultEvent:
        return self.deposit(user_id, NATIVE_ASSET, value)

    def withdraw(self, user_id: UserId, asset_id: AssetId, amount: int) -> VaultEvent:
        with self._lock:
            if amount <= 0:
                raise InvalidAmount(amount=amount)
            if is_native(asset_id):
                self._guard.check_withdrawal(amount=amount)
            available = self._ledger.get_balance(user_id=user_id, asset_id=asset_id)
            if available < amount:
                raise InsufficientBalance(user_id=user_id, asset_id=asset_id, requested=amount, available=available)

            usd_value = self._released_usd(user_id, asset_id, amount, available)
            with self._ledger.atomic():
                self._ledger.apply_withdrawal(user_id=user_id, asset_id=asset_id, amount=amount, usd_value=usd_value)
                self._transfer_out(asset_id, user_id, amount)

            logger.info("Withdrawal user=%s asset=%s amount=%s usd=%s", user_id, asset_id, amount, usd_value)
            return self._emit(
                VaultEvent(
                    event_type=VaultEventType.WITHDRAWAL,
                    user_id=user_id,
                    asset_id=asset_id,
                    amount=amount,
                    usd_value=usd_value,
                )
            )

    def receive(self, sender: UserId, value: int) -> None:
        """Plain native transfer with no deposit instruction attached."""
        raise DirectTransferNotAllowed(sender=sender, value=value)

    # Asset administration

    def support_asset(self, caller: str, asset_id: AssetId, feed_id: FeedId | None = None) -> None:
        with self._lock:
            self._registry.support(caller, asset_id, feed_id)
            self._emit(
                VaultEvent(
                    event_type=VaultEventType.ASSET_SUPPORTED,
                    user_id=UserId(caller),
                    asset_id=asset_id,
                    feed_id=feed_id,
                )
            )

    def unsupport_asset(self, caller: str, asset_id: AssetId) -> None:
        with self._lock:
            self._registry.unsupport(caller, asset_id)
            self._emit(
                VaultEvent(event_type=VaultEventType.ASSET_UNSUPPORTED, user_id=UserId(caller), asset_id=asset_id)
            )

    def set_asset_feed(self, caller: str, asset_id: AssetId, feed_id: FeedId) -> None:
        with self._lock:
            self._registry.set_feed(caller, asset_id, feed_id)
            self._emit(
                VaultEvent(
                    event_type=VaultEventType.FEED_UPDATED,
                    user_id=UserId(caller),
                    asset_id=asset_id,
                    feed_id=feed_id,
                )
            )

    def set_native_feed(self, caller: str, feed_id: FeedId) -> None:
        with self._lock:
            self._registry.require_admin(caller, "set native price feed")
            if not feed_id:
                raise InvalidOracle(asset_id=NATIVE_ASSET)
            self._oracle.rebind_native_feed(feed_id)
            logger.info("Native feed rebound to %s", feed_id)
            self._emit(
                VaultEvent(
                    event_type=VaultEventType.NATIVE_FEED_UPDATED,
                    user_id=UserId(caller),
                    asset_id=NATIVE_ASSET,
                    feed_id=feed_id,
                )
            )

    # Queries

    def get_balance(self, user_id: UserId, asset_id: AssetId) -> int:
        with self._lock:
            return self._ledger.get_balance(user_id=user_id, asset_id=asset_id)

    def get_supported_assets(self) -> list[AssetId]:
        with self._lock:
            return self._registry.supported_assets()

    def is_supported(self, asset_id: AssetId) -> bool:
        with self._lock:
            return self._registry.is_supported(asset_id)

    def get_feed(self, asset_id: AssetId) -> FeedId | None:
        with self._lock:
            if is_native(asset_id):
                return self._oracle.native_feed
            return self._registry.feed_for(asset_id)

    def get_total_deposited_usd(self) -> int:
        with self._lock:
            return self._ledger.total_usd

    def get_total_usd_value(self, user_id: UserId) -> int:
        """Current USD value of everything ``user_id`` holds.

        Holdings of assets with no feed bound are counted at the value they
        were credited with.
        """
        with self._lock:
            return sum(
                self._current_usd(user_id, asset_id, amount)
                for asset_id, amount in self._ledger.holdings(user_id).items()
            )

    def get_user_stats(self, user_id: UserId) -> UserStats:
        with self._lock:
            return self._ledger.stats(user_id)

    def recompute_total_usd(self) -> int:
        """Value every position from scratch; audit helper, never used by deposit or withdraw."""
        with self._lock:
            return sum(
                self._current_usd(user_id, asset_id, amount) for user_id, asset_id, amount in self._ledger.positions()
            )

    @property
    def events(self) -> list[VaultEvent]:
        with self._lock:
            return list(self._events)

    def drain_events(self) -> list[VaultEvent]:
        with self._lock:
            drained, self._events = self._events, []
            return drained

    # Internals

    def _released_usd(self, user_id: UserId, asset_id: AssetId, amount: int, available: int) -> int:
        credited = self._ledger.entry_usd(user_id=user_id, asset_id=asset_id)
        if amount == available:
            return credited
        if self._oracle.has_feed(asset_id):
            return min(credited, -self._oracle.usd_change(asset_id, before=available, after=available - amount))
        return credited * amount // available

    def _current_usd(self, user_id: UserId, asset_id: AssetId, amount: int) -> int:
        if self._oracle.has_feed(asset_id):
            return self._oracle.usd_value(asset_id, amount)
        return self._ledger.entry_usd(user_id=user_id, asset_id=asset_id)

    def _transfer_in(self, asset_id: AssetId, user_id: UserId, amount: int) -> None:
        self._run_transfer("in", self._transfer.transfer_in, asset_id, user_id, amount)

    def _transfer_out(self, asset_id: AssetId, user_id: UserId, amount: int) -> None:
        self._run_transfer("out", self._transfer.transfer_out, asset_id, user_id, amount)

    @staticmethod
    def _run_transfer(
        direction: str,
        transfer: Callable[[AssetId, UserId, int], bool | None],
        asset_id: AssetId,
        user_id: UserId,
        amount: int,
    ) -> None:
        try:
            result = transfer(asset_id, user_id, amount)
        except Exception as exc:
            logger.warning("Transfer %s of %s %s for %s raised %r", direction, amount, asset_id, user_id, exc)
            raise TransferFailed(
                direction=direction, asset_id=asset_id, account=user_id, amount=amount, reason=repr(exc)
            ) from exc
        if result is not True:
            logger.warning("Transfer %s of %s %s for %s returned %r", direction, amount, asset_id, user_id, result)
            raise TransferFailed(
                direction=direction,
                asset_id=asset_id,
                account=user_id,
                amount=amount,
                reason=f"transfer returned {result!r}",
            )

    def _emit(self, event: VaultEvent) -> VaultEvent:
        self._events.append(event)
        return event

    @staticmethod
    def _validate_config(config: VaultConfig) -> None:
        if config is None:
            raise InvalidConfiguration("config must be provided", field="config")
        if not isinstance(config.max_withdrawal, int) or config.max_withdrawal <= 0:
            raise InvalidConfiguration("max_withdrawal must be a positive integer", field="max_withdrawal")
        if not isinstance(config.max_total_usd, int) or config.max_total_usd <= 0:
            raise InvalidConfiguration("max_total_usd must be a positive integer", field="max_total_usd")
        if not config.native_feed:
            raise InvalidConfiguration("native_feed must be provided", field="native_feed")
        if config.max_price_age is not None and config.max_price_age <= timedelta(0):
            raise InvalidConfiguration("max_price_age must be positive when set", field="max_price_age")


__all__ = ["Vault", "VaultConfig"]
