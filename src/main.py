from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Sequence

from config import config
from db.db import init_db
from db.repositories import VaultEventRepository
from domain.base_types import NATIVE_ASSET, AssetId, UserId
from domain.errors import VaultError
from domain.vault import Vault
from importers.operations_importer import OperationAction, OperationsImporter, VaultOperation
from services.admin_gate import StaticAdminGate
from services.in_memory_custody import InMemoryCustody
from services.static_price_feed import StaticPriceFeed
from utils.formatting import format_units, format_usd

logger = logging.getLogger(__name__)


def build_custody(balances_path: Path | None, decimals_path: Path | None) -> InMemoryCustody:
    decimals: dict[AssetId, int] = {}
    if decimals_path is not None:
        decimals = {AssetId(asset): int(value) for asset, value in _read_json_object(decimals_path).items()}
    custody = InMemoryCustody(decimals=decimals)
    if balances_path is not None:
        for user, holdings in _read_json_object(balances_path).items():
            for asset, amount in holdings.items():
                custody.fund(UserId(user), AssetId(asset), int(amount))
    return custody


def apply_operation(vault: Vault, operation: VaultOperation) -> None:
    caller = operation.caller
    match operation.action:
        case OperationAction.DEPOSIT:
            assert operation.asset is not None
            vault.deposit(UserId(caller), operation.asset, operation.amount)
        case OperationAction.WITHDRAW:
            assert operation.asset is not None
            vault.withdraw(UserId(caller), operation.asset, operation.amount)
        case OperationAction.SUPPORT:
            assert operation.asset is not None
            vault.support_asset(caller, operation.asset, operation.feed)
        case OperationAction.UNSUPPORT:
            assert operation.asset is not None
            vault.unsupport_asset(caller, operation.asset)
        case OperationAction.SET_FEED:
            assert operation.asset is not None and operation.feed is not None
            vault.set_asset_feed(caller, operation.asset, operation.feed)
        case OperationAction.SET_NATIVE_FEED:
            assert operation.feed is not None
            vault.set_native_feed(caller, operation.feed)


def replay(vault: Vault, operations: Sequence[VaultOperation]) -> list[tuple[VaultOperation, VaultError]]:
    rejected: list[tuple[VaultOperation, VaultError]] = []
    for operation in operations:
        try:
            apply_operation(vault, operation)
        except VaultError as err:
            logger.info("Rejected %s by %s: %s", operation.action, operation.caller, err)
            rejected.append((operation, err))
    return rejected


def run(
    operations_csv: Path,
    prices_json: Path,
    *,
    balances_json: Path | None,
    decimals_json: Path | None,
    admins: Sequence[str],
    db_file: Path,
) -> None:
    settings = config()
    custody = build_custody(balances_json, decimals_json)
    vault = Vault(
        config=settings.vault_config(),
        admin_gate=StaticAdminGate(admins),
        transfer=custody,
        feed_service=StaticPriceFeed.from_json(prices_json),
    )
    session = init_db(db_file, reset=True)
    event_repository = VaultEventRepository(session)

    operations = OperationsImporter(operations_csv).load_operations()
    rejected = replay(vault, operations)
    event_repository.create_many(vault.drain_events())

    print(f"Replayed {len(operations)} operations from {operations_csv}")
    print(f"  Committed: {len(operations) - len(rejected)}")
    print(f"  Rejected:  {len(rejected)}")
    for operation, err in rejected:
        asset = operation.asset or "-"
        print(f"    {operation.action} {operation.caller} {asset} {operation.amount}: {type(err).__name__}")
    print_vault_summary(vault, custody, operations)


def print_vault_summary(vault: Vault, custody: InMemoryCustody, operations: Sequence[VaultOperation]) -> None:
    print(f"Total deposited: {format_usd(vault.get_total_deposited_usd())} USD")
    print(f"Supported assets: {', '.join(vault.get_supported_assets()) or '-'}")
    users = sorted({op.caller for op in operations if op.action in (OperationAction.DEPOSIT, OperationAction.WITHDRAW)})
    assets = [NATIVE_ASSET, *sorted({op.asset for op in operations if op.asset and op.asset != NATIVE_ASSET})]
    for user in users:
        user_id = UserId(user)
        stats = vault.get_user_stats(user_id)
        print(f"{user}: deposits={stats.deposit_count} withdrawals={stats.withdrawal_count}")
        for asset in assets:
            balance = vault.get_balance(user_id, asset)
            if balance:
                print(f"  {asset}: {format_units(balance, custody.decimals(asset))}")


def _read_json_object(path: Path) -> dict[str, Any]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        msg = f"{path} must contain a JSON object."
        raise ValueError(msg)
    return payload


def main(argv: Sequence[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    parser = argparse.ArgumentParser(description="Replay vault operations against an in-memory custody.")
    parser.add_argument("--operations", type=Path, default=Path("data/operations.csv"))
    parser.add_argument("--prices", type=Path, default=Path("data/prices.json"))
    parser.add_argument("--balances", type=Path, default=None)
    parser.add_argument("--decimals", type=Path, default=None)
    parser.add_argument("--admin", action="append", default=None)
    parser.add_argument("--db-file", type=Path, default=None)
    args = parser.parse_args(argv)
    run(
        args.operations,
        args.prices,
        balances_json=args.balances,
        decimals_json=args.decimals,
        admins=args.admin or ["admin"],
        db_file=args.db_file or config().db_file,
    )


if __name__ == "__main__":
    main()
