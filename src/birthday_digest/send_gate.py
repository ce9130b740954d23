from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from birthday_digest.date_logic import InvalidTimezone, as_utc, resolve_timezone
from birthday_digest.models import DEFAULT_COOLDOWN_HOURS, User

LOGGER = logging.getLogger(__name__)


def is_send_hour(user: User, now: datetime) -> bool:
    try:
        tz = resolve_timezone(user.iana_tz)
    except InvalidTimezone:
        LOGGER.warning("Invalid timezone for user %s: %r", user.id, user.iana_tz)
        return False

    local_now = as_utc(now).astimezone(tz)
    is_time = local_now.hour == user.send_hour
    LOGGER.debug(
        "User %s hour check: utc=%s local=%s (%s) send_hour=%s match=%s",
        user.id,
        as_utc(now).isoformat(),
        local_now.isoformat(),
        user.iana_tz,
        user.send_hour,
        is_time,
    )
    return is_time


def parse_last_digest_at(value: str | None) -> datetime | None:
    if value is None:
        return None

    text = value.strip()
    if not text:
        return None

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def was_notified_recently(
    user: User,
    now: datetime,
    *,
    cooldown_hours: int = DEFAULT_COOLDOWN_HOURS,
) -> bool:
    if user.last_digest_at is None:
        return False

    last_digest = parse_last_digest_at(user.last_digest_at)
    if last_digest is None:
        LOGGER.info(
            "User %s has unparseable last_digest_at %r - allowing send",
            user.id,
            user.last_digest_at,
        )
        return False

    elapsed = as_utc(now) - last_digest
    was_recent = elapsed < timedelta(hours=cooldown_hours)
    LOGGER.debug(
        "User %s cooldown check: last_digest=%s elapsed=%s recent=%s",
        user.id,
        last_digest.isoformat(),
        elapsed,
        was_recent,
    )
    return was_recent


def should_send(user: User, now: datetime, *, cooldown_hours: int = DEFAULT_COOLDOWN_HOURS) -> bool:
    if not is_send_hour(user, now):
        return False
    if was_notified_recently(user, now, cooldown_hours=cooldown_hours):
        LOGGER.info("Skipping user %s - notified within the last %s hours", user.id, cooldown_hours)
        return False
    return True
