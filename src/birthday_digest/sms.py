from __future__ import annotations

import logging
import re
from typing import Protocol

import httpx

LOGGER = logging.getLogger(__name__)

DEFAULT_SURGE_BASE_URL = "https://api.surge.app"


class SmsSendError(RuntimeError):
    pass


class SmsSender(Protocol):
    async def send_sms(self, to: str, body: str) -> None: ...


def to_e164(phone_number: str, default_country_code: str = "+1") -> str:
    value = phone_number.strip()
    if value.startswith("+"):
        return value
    digits = re.sub(r"\D", "", value)
    return f"{default_country_code}{digits}"


class SurgeSmsSender:
    def __init__(
        self,
        *,
        api_key: str,
        account_id: str,
        base_url: str = DEFAULT_SURGE_BASE_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/accounts/{account_id}/messages"
        self._client = client
        self._timeout = timeout

    async def send_sms(self, to: str, body: str) -> None:
        if not to:
            raise SmsSendError("Phone number 'to' is required")
        if not to.startswith("+"):
            raise SmsSendError("Phone number 'to' must be in E.164 format (starting with +)")

        headers = {"Authorization": f"Bearer {self._api_key}"}
        payload = {"to": to, "body": body}

        try:
            if self._client is not None:
                response = await self._client.post(self._url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise SmsSendError(f"Failed to send SMS request: {exc}") from exc

        if not response.is_success:
            raise SmsSendError(
                f"SMS API returned error status: {response.status_code}. Response: {response.text}"
            )

        LOGGER.info("SMS sent to %s", to)
