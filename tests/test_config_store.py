from pathlib import Path

import pytest

from birthday_digest.config_store import ensure_default_config, load_config, save_config_atomic
from birthday_digest.message_composer import compose_message
from birthday_digest.models import BirthdayCandidate, DigestConfig


def test_roundtrip_config(tmp_path: Path) -> None:
    path = tmp_path / "digest.toml"
    config = DigestConfig(
        product_link="https://example.test/\"hbd\"",
        max_message_length=140,
        cooldown_hours=18,
        send_pacing_seconds=0.5,
        default_country_code="+44",
    )

    save_config_atomic(path, config)

    assert load_config(path) == config


def test_missing_keys_fall_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "digest.toml"
    path.write_text('product_link = "https://example.test"\n', encoding="utf-8")

    loaded = load_config(path)

    assert loaded.product_link == "https://example.test"
    assert loaded.max_message_length == 160
    assert loaded.cooldown_hours == 12
    assert loaded.default_country_code == "+1"


@pytest.mark.parametrize(
    "line",
    [
        "max_message_length = 0",
        "cooldown_hours = -1",
        "send_pacing_seconds = -0.5",
        'default_country_code = "1"',
        'product_link = "   "',
    ],
)
def test_invalid_values_rejected(tmp_path: Path, line: str) -> None:
    path = tmp_path / "digest.toml"
    path.write_text(line + "\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.toml")


def test_ensure_default_config_writes_once(tmp_path: Path) -> None:
    path = tmp_path / "config" / "digest.toml"

    ensure_default_config(path)
    assert load_config(path) == DigestConfig()

    path.write_text("cooldown_hours = 6\n", encoding="utf-8")
    ensure_default_config(path)
    assert load_config(path).cooldown_hours == 6


def test_budget_must_leave_room_for_link(tmp_path: Path) -> None:
    path = tmp_path / "digest.toml"
    path.write_text('product_link = "https://hbd.bot"\nmax_message_length = 16\n', encoding="utf-8")

    with pytest.raises(ValueError, match="product link"):
        load_config(path)


def test_smallest_valid_budget_keeps_messages_in_bounds(tmp_path: Path) -> None:
    path = tmp_path / "digest.toml"
    path.write_text('product_link = "https://hbd.bot"\nmax_message_length = 17\n', encoding="utf-8")

    config = load_config(path)
    message = compose_message(
        [BirthdayCandidate(name="Alice", days_until=0, age_turning=30)],
        link=config.product_link,
        max_length=config.max_message_length,
    )

    assert message == "\nhttps://hbd.bot"
    assert len(message) <= config.max_message_length
