from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from birthday_digest.date_logic import birthdate_from_timestamp
from birthday_digest.send_gate import parse_last_digest_at
from birthday_digest.store import SqliteStore, StoreError, validate_user_settings


@pytest.fixture
def store(tmp_path: Path) -> SqliteStore:
    sqlite_store = SqliteStore(tmp_path / "data" / "birthdays.sqlite3")
    sqlite_store.initialize()
    return sqlite_store


def test_new_user_gets_defaults(store: SqliteStore) -> None:
    user = store.create_user(" 5551234567 ")

    assert user.phone_number == "5551234567"
    assert user.days_notice == 7
    assert user.send_hour == 9
    assert user.iana_tz == "America/New_York"
    assert user.last_digest_at is None
    assert store.list_users() == [user]


def test_duplicate_phone_number_rejected(store: SqliteStore) -> None:
    store.create_user("5551234567")

    with pytest.raises(StoreError):
        store.create_user("5551234567")


def test_reminder_birthdate_stored_as_utc_midnight_millis(store: SqliteStore) -> None:
    user = store.create_user("5551234567")

    reminder = store.create_reminder(user.id, " Alice ", date(1990, 3, 14))

    assert reminder.name == "Alice"
    assert reminder.birthdate % 86_400_000 == 0
    assert birthdate_from_timestamp(reminder.birthdate) == date(1990, 3, 14)


def test_list_reminders_only_returns_owned_rows(store: SqliteStore) -> None:
    alice = store.create_user("5550000001")
    bob = store.create_user("5550000002")
    store.create_reminder(alice.id, "Mom", date(1960, 5, 1))
    store.create_reminder(bob.id, "Dad", date(1958, 8, 22))
    store.create_reminder(alice.id, "Sis", date(1994, 2, 3))

    assert [r.name for r in store.list_reminders(alice.id)] == ["Mom", "Sis"]
    assert [r.name for r in store.list_reminders(bob.id)] == ["Dad"]


def test_update_user_settings(store: SqliteStore) -> None:
    user = store.create_user("5551234567")

    updated = store.update_user_settings(user.id, days_notice=3, send_hour=22, iana_tz="Europe/Berlin")

    assert (updated.days_notice, updated.send_hour, updated.iana_tz) == (3, 22, "Europe/Berlin")
    assert store.get_user(user.id) == updated


def test_update_unknown_user(store: SqliteStore) -> None:
    with pytest.raises(LookupError):
        store.update_user_settings(999, days_notice=3, send_hour=9, iana_tz="UTC")


@pytest.mark.parametrize(
    ("days_notice", "send_hour", "iana_tz"),
    [(0, 9, "UTC"), (15, 9, "UTC"), (7, -1, "UTC"), (7, 24, "UTC"), (7, 9, "Mars/Olympus_Mons")],
)
def test_invalid_settings_rejected(days_notice: int, send_hour: int, iana_tz: str) -> None:
    with pytest.raises(ValueError):
        validate_user_settings(days_notice, send_hour, iana_tz)


def test_mark_digest_sent_records_utc_instant(store: SqliteStore) -> None:
    user = store.create_user("5551234567")
    sent_at = datetime(2024, 1, 15, 9, 0, 5, tzinfo=timezone.utc)

    store.mark_digest_sent(user.id, sent_at)

    stored = store.get_user(user.id)
    assert stored.last_digest_at == "2024-01-15 09:00:05"
    assert parse_last_digest_at(stored.last_digest_at) == sent_at


def test_get_missing_user(store: SqliteStore) -> None:
    assert store.get_user(42) is None


def test_reminder_for_unknown_user_rejected(store: SqliteStore) -> None:
    with pytest.raises(StoreError):
        store.create_reminder(999, "Nobody's friend", date(1990, 3, 14))

    assert store.list_reminders(999) == []


def test_initialize_is_idempotent(store: SqliteStore) -> None:
    user = store.create_user("5551234567")

    store.initialize()

    assert store.list_users() == [user]
