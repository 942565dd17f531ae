from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "ATM Ledger"
    database_url: str = "sqlite:///atm_ledger.db"
    log_level: str = "INFO"
    minimum_balance: Decimal = Decimal("100.00")
    history_limit: int = 50
    currency_symbol: str = "$"
    seed_demo_accounts: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ATM_",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
