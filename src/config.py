from __future__ import annotations

from datetime import timedelta
from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from domain.base_types import FeedId
from domain.vault import VaultConfig

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"


class AppSettings(BaseSettings):
    coindesk_api_key: str | None = None

    vault_max_withdrawal: int = 10 * 10**18
    vault_max_total_usd: int = 1_000_000 * 10**6
    vault_native_feed: str = "ETH-USD"
    price_max_age_seconds: int | None = None

    db_file: Path = ARTIFACTS_DIR / "vault_ledger.db"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def vault_config(self) -> VaultConfig:
        max_age = None if self.price_max_age_seconds is None else timedelta(seconds=self.price_max_age_seconds)
        return VaultConfig(
            max_withdrawal=self.vault_max_withdrawal,
            max_total_usd=self.vault_max_total_usd,
            native_feed=FeedId(self.vault_native_feed),
            max_price_age=max_age,
        )


@cache
def config() -> AppSettings:
    return AppSettings()
