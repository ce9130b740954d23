from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from birthday_digest.date_logic import DigestComputationError, InvalidTimezone, next_occurrence, resolve_timezone
from birthday_digest.models import BirthdayCandidate, Reminder, User

LOGGER = logging.getLogger(__name__)


def select_candidates(user: User, reminders: Iterable[Reminder], now: datetime) -> list[BirthdayCandidate]:
    try:
        tz = resolve_timezone(user.iana_tz)
    except InvalidTimezone:
        LOGGER.warning("Invalid timezone for user %s: %r", user.id, user.iana_tz)
        return []

    candidates: list[BirthdayCandidate] = []
    for reminder in reminders:
        try:
            days_until, age_turning = next_occurrence(reminder.birthdate, tz, now)
        except DigestComputationError as exc:
            LOGGER.warning("Failed to compute next birthday for reminder %s: %s", reminder.id, exc)
            continue

        in_range = 0 <= days_until <= user.days_notice
        LOGGER.debug(
            "Reminder %s: days_until=%s days_notice=%s in_range=%s",
            reminder.id,
            days_until,
            user.days_notice,
            in_range,
        )
        if in_range:
            candidates.append(
                BirthdayCandidate(name=reminder.name, days_until=days_until, age_turning=age_turning)
            )

    # sort() is stable, so ties keep reminder order
    candidates.sort(key=lambda item: item.days_until)
    return candidates
