from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, Protocol

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
    event,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.engine import Connection, Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from birthday_digest.date_logic import InvalidTimezone, as_utc, birthdate_to_timestamp, resolve_timezone
from birthday_digest.models import DEFAULT_DAYS_NOTICE, DEFAULT_SEND_HOUR, DEFAULT_TIMEZONE, Reminder, User

LOGGER = logging.getLogger(__name__)

LAST_DIGEST_FORMAT = "%Y-%m-%d %H:%M:%S"

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("phone_number", Text, nullable=False, unique=True),
    Column("created_at", Text, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    Column("last_digest_at", Text),  # UTC, LAST_DIGEST_FORMAT
    Column("days_notice", Integer, nullable=False, server_default=str(DEFAULT_DAYS_NOTICE)),
    Column("send_hour", Integer, nullable=False, server_default=str(DEFAULT_SEND_HOUR)),
    Column("iana_tz", Text, nullable=False, server_default=DEFAULT_TIMEZONE),
)

reminders = Table(
    "reminders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("name", Text, nullable=False),
    Column("birthdate", Integer, nullable=False),  # epoch ms, UTC midnight
    Column("created_at", Text, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    Column("updated_at", Text, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    Index("idx_reminders_user_id", "user_id"),
)


class StoreError(RuntimeError):
    pass


class DigestStore(Protocol):
    def list_users(self) -> list[User]: ...

    def list_reminders(self, user_id: int) -> list[Reminder]: ...

    def mark_digest_sent(self, user_id: int, sent_at: datetime) -> None: ...


def create_db_engine(db_path: Path) -> Engine:
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def validate_user_settings(days_notice: int, send_hour: int, iana_tz: str) -> None:
    if days_notice < 1 or days_notice > 14:
        raise ValueError("days_notice must be between 1 and 14")
    if send_hour < 0 or send_hour > 23:
        raise ValueError("send_hour must be between 0 and 23")
    try:
        resolve_timezone(iana_tz)
    except InvalidTimezone as exc:
        raise ValueError(str(exc)) from exc


def _row_to_user(row: Row) -> User:
    return User(
        id=int(row.id),
        phone_number=str(row.phone_number),
        created_at=str(row.created_at),
        last_digest_at=row.last_digest_at,
        days_notice=int(row.days_notice),
        send_hour=int(row.send_hour),
        iana_tz=str(row.iana_tz),
    )


def _row_to_reminder(row: Row) -> Reminder:
    return Reminder(
        id=int(row.id),
        user_id=int(row.user_id),
        name=str(row.name),
        birthdate=row.birthdate,
        created_at=str(row.created_at),
        updated_at=str(row.updated_at),
    )


class SqliteStore:
    def __init__(self, path: Path) -> None:
        self._path = path
        self._engine = create_db_engine(path)

    @contextmanager
    def _begin(self) -> Iterator[Connection]:
        try:
            with self._engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc

    def initialize(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise StoreError(f"Cannot initialize database {self._path}: {exc}") from exc

    def list_users(self) -> list[User]:
        with self._begin() as conn:
            rows = conn.execute(select(users).order_by(users.c.id)).all()
        return [_row_to_user(row) for row in rows]

    def get_user(self, user_id: int) -> User | None:
        with self._begin() as conn:
            row = conn.execute(select(users).where(users.c.id == user_id)).first()
        return _row_to_user(row) if row is not None else None

    def list_reminders(self, user_id: int) -> list[Reminder]:
        with self._begin() as conn:
            rows = conn.execute(
                select(reminders).where(reminders.c.user_id == user_id).order_by(reminders.c.id)
            ).all()
        return [_row_to_reminder(row) for row in rows]

    def create_user(self, phone_number: str) -> User:
        phone = phone_number.strip()
        if not phone:
            raise ValueError("phone_number must not be empty")

        with self._begin() as conn:
            result = conn.execute(insert(users).values(phone_number=phone))
            user_id = result.inserted_primary_key[0]
            row = conn.execute(select(users).where(users.c.id == user_id)).one()
        return _row_to_user(row)

    def update_user_settings(self, user_id: int, *, days_notice: int, send_hour: int, iana_tz: str) -> User:
        validate_user_settings(days_notice, send_hour, iana_tz)

        with self._begin() as conn:
            result = conn.execute(
                update(users)
                .where(users.c.id == user_id)
                .values(days_notice=days_notice, send_hour=send_hour, iana_tz=iana_tz)
            )
            if result.rowcount == 0:
                raise LookupError(f"Unknown user id: {user_id}")
            row = conn.execute(select(users).where(users.c.id == user_id)).one()
        return _row_to_user(row)

    def create_reminder(self, user_id: int, name: str, birthdate: date) -> Reminder:
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("reminder name must not be empty")

        with self._begin() as conn:
            result = conn.execute(
                insert(reminders).values(
                    user_id=user_id,
                    name=cleaned,
                    birthdate=birthdate_to_timestamp(birthdate),
                )
            )
            reminder_id = result.inserted_primary_key[0]
            row = conn.execute(select(reminders).where(reminders.c.id == reminder_id)).one()
        return _row_to_reminder(row)

    def mark_digest_sent(self, user_id: int, sent_at: datetime) -> None:
        stamp = as_utc(sent_at).strftime(LAST_DIGEST_FORMAT)
        with self._begin() as conn:
            conn.execute(update(users).where(users.c.id == user_id).values(last_digest_at=stamp))
        LOGGER.debug("Recorded digest for user %s at %s", user_id, stamp)
