from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from birthday_digest.sms import DEFAULT_SURGE_BASE_URL


@dataclass(frozen=True)
class Settings:
    surge_api_key: str
    surge_account_id: str
    surge_base_url: str
    database_path: Path
    digest_config_path: Path


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        raise ValueError(f"Missing required environment variable: {name}")
    return value.strip()


def load_settings() -> Settings:
    root = Path.cwd()

    api_key = _required_env("SURGE_API_KEY")
    account_id = _required_env("SURGE_ACCOUNT_ID")
    base_url = os.getenv("SURGE_API_BASE_URL", DEFAULT_SURGE_BASE_URL).strip()

    database_path = Path(os.getenv("DATABASE_PATH", root / "data" / "birthdays.sqlite3"))
    digest_config_path = Path(os.getenv("DIGEST_CONFIG_PATH", root / "config" / "digest.toml"))

    return Settings(
        surge_api_key=api_key,
        surge_account_id=account_id,
        surge_base_url=base_url,
        database_path=database_path,
        digest_config_path=digest_config_path,
    )
