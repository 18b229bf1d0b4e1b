from __future__ import annotations


class VaultError(Exception):
    """Base class for every rejected vault operation.

    Each subclass is a distinct, user-visible outcome; none is retried.
    """


class InvalidConfiguration(VaultError):
    def __init__(self, message: str, *, field: str) -> None:
        super().__init__(message)
        self.field = field


class InvalidAmount(VaultError):
    def __init__(self, *, amount: int) -> None:
        super().__init__(f"Amount must be greater than zero, got {amount}")
        self.amount = amount


class InvalidAsset(VaultError):
    def __init__(self, *, asset_id: str) -> None:
        super().__init__(f"Asset {asset_id!r} cannot be registered as a secondary asset")
        self.asset_id = asset_id


class InvalidOracle(VaultError):
    def __init__(self, *, asset_id: str) -> None:
        super().__init__(f"Invalid price feed binding for asset {asset_id!r}")
        self.asset_id = asset_id


class AssetNotSupported(VaultError):
    def __init__(self, *, asset_id: str) -> None:
        super().__init__(f"Asset {asset_id} is not supported")
        self.asset_id = asset_id


class InsufficientBalance(VaultError):
    def __init__(self, *, user_id: str, asset_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient balance for user={user_id} asset={asset_id} requested={requested} available={available}"
        )
        self.user_id = user_id
        self.asset_id = asset_id
        self.requested = requested
        self.available = available


class CapacityExceeded(VaultError):
    def __init__(self, *, deposit_usd: int, total_usd: int, max_total_usd: int) -> None:
        super().__init__(
            f"Deposit worth {deposit_usd} would raise total {total_usd} above capacity {max_total_usd}"
        )
        self.deposit_usd = deposit_usd
        self.total_usd = total_usd
        self.max_total_usd = max_total_usd


class WithdrawalLimitExceeded(VaultError):
    def __init__(self, *, amount: int, max_withdrawal: int) -> None:
        super().__init__(f"Withdrawal of {amount} exceeds per-transaction limit {max_withdrawal}")
        self.amount = amount
        self.max_withdrawal = max_withdrawal


class TransferFailed(VaultError):
    def __init__(self, *, direction: str, asset_id: str, account: str, amount: int, reason: str) -> None:
        super().__init__(f"Transfer {direction} of {amount} {asset_id} for {account} failed: {reason}")
        self.direction = direction
        self.asset_id = asset_id
        self.account = account
        self.amount = amount
        self.reason = reason


class OracleNotConfigured(VaultError):
    def __init__(self, *, asset_id: str) -> None:
        super().__init__(f"No price feed bound for asset {asset_id}")
        self.asset_id = asset_id


class StalePrice(VaultError):
    def __init__(self, *, feed_id: str, age_seconds: float, max_age_seconds: float) -> None:
        super().__init__(f"Price from feed {feed_id} is {age_seconds:.0f}s old, limit is {max_age_seconds:.0f}s")
        self.feed_id = feed_id
        self.age_seconds = age_seconds
        self.max_age_seconds = max_age_seconds


class PriceUnavailable(VaultError):
    def __init__(self, *, feed_id: str, reason: str) -> None:
        super().__init__(f"Feed {feed_id} could not provide a price: {reason}")
        self.feed_id = feed_id
        self.reason = reason


class InvalidPrice(VaultError):
    def __init__(self, *, feed_id: str, price: int) -> None:
        super().__init__(f"Feed {feed_id} reported non-positive price {price}")
        self.feed_id = feed_id
        self.price = price


class Unauthorized(VaultError):
    def __init__(self, *, caller: str, operation: str) -> None:
        super().__init__(f"Caller {caller} is not allowed to {operation}")
        self.caller = caller
        self.operation = operation


class DirectTransferNotAllowed(VaultError):
    def __init__(self, *, sender: str, value: int) -> None:
        super().__init__(f"Direct transfer of {value} from {sender} rejected; use deposit")
        self.sender = sender
        self.value = value


__all__ = [
    "AssetNotSupported",
    "CapacityExceeded",
    "DirectTransferNotAllowed",
    "InsufficientBalance",
    "InvalidAmount",
    "InvalidAsset",
    "InvalidConfiguration",
    "InvalidOracle",
    "InvalidPrice",
    "OracleNotConfigured",
    "PriceUnavailable",
    "StalePrice",
    "TransferFailed",
    "Unauthorized",
    "VaultError",
    "WithdrawalLimitExceeded",
]
