from __future__ import annotations

import asyncio
import logging
import os

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from birthday_digest.config_store import ensure_default_config, load_config
from birthday_digest.digest_service import DigestService
from birthday_digest.settings import Settings, load_settings
from birthday_digest.sms import SurgeSmsSender
from birthday_digest.store import SqliteStore

LOGGER = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_service(settings: Settings) -> DigestService:
    ensure_default_config(settings.digest_config_path)
    config = load_config(settings.digest_config_path)

    store = SqliteStore(settings.database_path)
    store.initialize()

    sender = SurgeSmsSender(
        api_key=settings.surge_api_key,
        account_id=settings.surge_account_id,
        base_url=settings.surge_base_url,
    )
    return DigestService(store=store, sender=sender, config=config)


async def _run_scheduler(service: DigestService) -> None:
    scheduler = AsyncIOScheduler(timezone="UTC")
    # Users pick a local hour, so every UTC hour is a potential send slot.
    scheduler.add_job(
        service.dispatch_now,
        CronTrigger(minute=0, timezone="UTC"),
        name="hourly-birthday-digest",
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()

    # Catch up on the current hour; the cooldown guard prevents double sends.
    await service.dispatch_now()

    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


def run_once() -> None:
    configure_logging()
    service = build_service(load_settings())
    sent = asyncio.run(service.dispatch_now())
    LOGGER.info("Sweep complete, %s digests sent", sent)


def main() -> None:
    configure_logging()
    service = build_service(load_settings())
    LOGGER.info("Starting hourly birthday digest scheduler")
    asyncio.run(_run_scheduler(service))


if __name__ == "__main__":
    main()
