from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Longest run of years without a Feb 29 (e.g. 1897-1903).
MAX_YEARS_SEARCHED = 8


class DigestComputationError(ValueError):
    pass


class InvalidTimestamp(DigestComputationError):
    pass


class InvalidTimezone(DigestComputationError):
    pass


class RecurrenceComputationFailure(DigestComputationError):
    pass


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as exc:
        raise InvalidTimezone(f"Unknown time zone: {name!r}") from exc


def as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def local_today(tz: tzinfo, now: datetime) -> date:
    return as_utc(now).astimezone(tz).date()


def birthdate_from_timestamp(birthdate_ms: int) -> date:
    try:
        millis = int(birthdate_ms)
        return (EPOCH + timedelta(milliseconds=millis)).date()
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidTimestamp(f"Invalid birthdate timestamp: {birthdate_ms!r}") from exc


def birthdate_to_timestamp(birthdate: date) -> int:
    midnight = datetime(birthdate.year, birthdate.month, birthdate.day, tzinfo=timezone.utc)
    return (midnight - EPOCH) // timedelta(milliseconds=1)


def birthday_in_year(birthdate: date, year: int) -> date | None:
    try:
        return birthdate.replace(year=year)
    except ValueError:
        return None


def next_birthday(birthdate: date, today: date) -> date:
    # Feb 29 is skipped, not clamped, in years that lack it.
    for year in range(today.year, today.year + MAX_YEARS_SEARCHED + 1):
        occurrence = birthday_in_year(birthdate, year)
        if occurrence is not None and occurrence >= today:
            return occurrence

    raise RecurrenceComputationFailure(
        f"No occurrence of {birthdate.month:02d}-{birthdate.day:02d} found after {today.isoformat()}"
    )


def next_occurrence(birthdate_ms: int, tz: tzinfo | str, now: datetime) -> tuple[int, int]:
    if isinstance(tz, str):
        tz = resolve_timezone(tz)

    birthdate = birthdate_from_timestamp(birthdate_ms)
    today = local_today(tz, now)
    occurrence = next_birthday(birthdate, today)
    return (occurrence - today).days, occurrence.year - birthdate.year


def ordinal(n: int) -> str:
    if n % 100 in (11, 12, 13):
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"
