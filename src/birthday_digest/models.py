from __future__ import annotations

from dataclasses import dataclass


DEFAULT_DAYS_NOTICE = 7
DEFAULT_SEND_HOUR = 9
DEFAULT_TIMEZONE = "America/New_York"

DEFAULT_PRODUCT_LINK = "https://hbd.bot"
DEFAULT_MAX_MESSAGE_LENGTH = 160
DEFAULT_COOLDOWN_HOURS = 12


@dataclass(frozen=True)
class User:
    id: int
    phone_number: str
    created_at: str
    last_digest_at: str | None
    days_notice: int
    send_hour: int
    iana_tz: str


@dataclass(frozen=True)
class Reminder:
    id: int
    user_id: int
    name: str
    birthdate: int  # epoch milliseconds, UTC midnight
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class BirthdayCandidate:
    name: str
    days_until: int
    age_turning: int


@dataclass(frozen=True)
class OutboundMessage:
    user_id: int
    phone_number: str
    body: str


@dataclass(frozen=True)
class DigestConfig:
    product_link: str = DEFAULT_PRODUCT_LINK
    max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH
    cooldown_hours: int = DEFAULT_COOLDOWN_HOURS
    send_pacing_seconds: float = 1.0
    default_country_code: str = "+1"
