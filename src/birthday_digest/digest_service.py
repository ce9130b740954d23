from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from birthday_digest.candidate_selector import select_candidates
from birthday_digest.message_composer import compose_message
from birthday_digest.models import DigestConfig, OutboundMessage
from birthday_digest.send_gate import should_send
from birthday_digest.sms import SmsSendError, SmsSender, to_e164
from birthday_digest.store import DigestStore, StoreError

LOGGER = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def compile_digests(store: DigestStore, now: datetime, config: DigestConfig | None = None) -> list[OutboundMessage]:
    config = config or DigestConfig()
    users = store.list_users()
    LOGGER.info("Compiling digests for %s users at %s", len(users), now.isoformat())

    messages: list[OutboundMessage] = []
    for user in users:
        if not should_send(user, now, cooldown_hours=config.cooldown_hours):
            continue

        try:
            reminders = store.list_reminders(user.id)
        except StoreError:
            LOGGER.exception("Failed to load reminders for user %s", user.id)
            continue

        candidates = select_candidates(user, reminders, now)
        body = compose_message(candidates, link=config.product_link, max_length=config.max_message_length)
        if body is None:
            continue

        LOGGER.info("User %s: %s upcoming birthdays, %s chars", user.id, len(candidates), len(body))
        messages.append(OutboundMessage(user_id=user.id, phone_number=user.phone_number, body=body))

    return messages


class DigestService:
    def __init__(
        self,
        *,
        store: DigestStore,
        sender: SmsSender,
        config: DigestConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._sender = sender
        self._config = config or DigestConfig()
        self._clock = clock

    async def dispatch(self, now: datetime) -> int:
        messages = compile_digests(self._store, now, self._config)
        if not messages:
            LOGGER.info("No birthday digests due at %s", now.isoformat())
            return 0

        sent_count = 0
        for index, message in enumerate(messages):
            if index > 0 and self._config.send_pacing_seconds > 0:
                await asyncio.sleep(self._config.send_pacing_seconds)

            destination = to_e164(message.phone_number, self._config.default_country_code)
            try:
                await self._sender.send_sms(destination, message.body)
            except SmsSendError as exc:
                LOGGER.error("Failed to send digest to user %s: %s", message.user_id, exc)
                continue

            sent_count += 1
            try:
                self._store.mark_digest_sent(message.user_id, self._clock())
            except StoreError:
                LOGGER.exception("Failed to record digest delivery for user %s", message.user_id)

        LOGGER.info("Sent %s of %s birthday digests", sent_count, len(messages))
        return sent_count

    async def dispatch_now(self) -> int:
        return await self.dispatch(self._clock())
