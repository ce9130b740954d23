from pathlib import Path

from birthday_digest.config_store import load_config
from birthday_digest.digest_service import DigestService
from birthday_digest.main import build_service
from birthday_digest.models import DigestConfig
from birthday_digest.settings import Settings
from birthday_digest.store import SqliteStore


def test_build_service_prepares_config_and_database(tmp_path: Path) -> None:
    settings = Settings(
        surge_api_key="key",
        surge_account_id="acct",
        surge_base_url="https://api.surge.test",
        database_path=tmp_path / "data" / "birthdays.sqlite3",
        digest_config_path=tmp_path / "config" / "digest.toml",
    )

    service = build_service(settings)

    assert isinstance(service, DigestService)
    assert load_config(settings.digest_config_path) == DigestConfig()
    assert SqliteStore(settings.database_path).list_users() == []
