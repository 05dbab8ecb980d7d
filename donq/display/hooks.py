"""DONQ — Display Hook Implementations."""

import httpx

from donq.config import Settings
from donq.core.logging import get_logger
from donq.display.base_hook import DisplayHook
from donq.models.donation_models import DonationOut, DonationRecord

logger = get_logger("display")

DEFAULT_TIMEOUT_SECONDS = 10.0


class LoggingDisplayHook(DisplayHook):
    """Default hook: records the on-air trigger in the log."""

    async def show(self, record: DonationRecord) -> None:
        logger.info(
            f"On air: {record.name} donated {record.amount}",
            extra={"donation_id": record.id},
        )


class WebhookDisplayHook(DisplayHook):
    """POSTs the donation JSON to a titler / overlay webhook."""

    def __init__(
        self,
        url: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self._client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else DEFAULT_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def show(self, record: DonationRecord) -> None:
        payload = DonationOut.from_record(record).model_dump(mode="json")
        resp = await self._client.post(self.url, json=payload)
        resp.raise_for_status()
        logger.info(
            f"Display webhook accepted donation ({resp.status_code})",
            extra={"donation_id": record.id},
        )

    async def close(self) -> None:
        if not self._client.is_closed:
            await self._client.aclose()


def build_display_hook(app_settings: Settings) -> DisplayHook:
    """Webhook hook when a URL is configured, logging hook otherwise."""
    if app_settings.display_webhook_url:
        return WebhookDisplayHook(
            app_settings.display_webhook_url,
            timeout=app_settings.fetch_timeout_seconds,
        )
    return LoggingDisplayHook()
