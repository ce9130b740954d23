from __future__ import annotations

import os
import tempfile
import tomllib
from pathlib import Path

from birthday_digest.models import DigestConfig


def _toml_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _validate_country_code(value: str) -> str:
    code = value.strip()
    if not code.startswith("+") or not code[1:].isdigit():
        raise ValueError("default_country_code must look like +<digits>")
    return code


def validate_config(config: DigestConfig) -> DigestConfig:
    link = config.product_link.strip()
    if not link:
        raise ValueError("product_link must not be empty")

    # "\n" + link is always appended
    if config.max_message_length <= len(link) + 1:
        raise ValueError("max_message_length must be longer than the product link plus a newline")
    if config.cooldown_hours < 0:
        raise ValueError("cooldown_hours must not be negative")
    if config.send_pacing_seconds < 0:
        raise ValueError("send_pacing_seconds must not be negative")

    return DigestConfig(
        product_link=link,
        max_message_length=int(config.max_message_length),
        cooldown_hours=int(config.cooldown_hours),
        send_pacing_seconds=float(config.send_pacing_seconds),
        default_country_code=_validate_country_code(config.default_country_code),
    )


def load_config(path: Path) -> DigestConfig:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("rb") as file_obj:
        data = tomllib.load(file_obj)

    defaults = DigestConfig()
    config = DigestConfig(
        product_link=str(data.get("product_link", defaults.product_link)),
        max_message_length=int(data.get("max_message_length", defaults.max_message_length)),
        cooldown_hours=int(data.get("cooldown_hours", defaults.cooldown_hours)),
        send_pacing_seconds=float(data.get("send_pacing_seconds", defaults.send_pacing_seconds)),
        default_country_code=str(data.get("default_country_code", defaults.default_country_code)),
    )
    return validate_config(config)


def render_config(config: DigestConfig) -> str:
    validated = validate_config(config)

    lines = [
        "# Sent hourly; each user gets at most one digest per cooldown window.",
        f'product_link = "{_toml_escape(validated.product_link)}"',
        f"max_message_length = {validated.max_message_length}",
        f"cooldown_hours = {validated.cooldown_hours}",
        f"send_pacing_seconds = {validated.send_pacing_seconds}",
        f'default_country_code = "{_toml_escape(validated.default_country_code)}"',
    ]
    return "\n".join(lines) + "\n"


def save_config_atomic(path: Path, config: DigestConfig) -> None:
    rendered = render_config(config)
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        delete=False,
    ) as temp_file:
        temp_file.write(rendered)
        temp_name = temp_file.name

    os.replace(temp_name, path)


def ensure_default_config(path: Path) -> None:
    if path.exists():
        return
    save_config_atomic(path, DigestConfig())
