"""Best-effort forwarding of contact submissions to a spreadsheet webhook."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from nomasoft import config
from nomasoft.config import Settings

logger = logging.getLogger(__name__)


def build_sheet_record(
    *,
    name: str,
    email: str,
    company: str | None,
    message: str,
    service_key: str,
    service_label: str,
    locale: str,
    received_at: datetime | None = None,
) -> dict[str, Any]:
    record: dict[str, Any] = {"name": name, "email": email}
    if company is not None:
        record["company"] = company
    record.update(
        {
            "message": message,
            "service": service_label,
            "serviceKey": service_key,
            "locale": locale,
            "receivedAt": (received_at or datetime.now(UTC)).isoformat(),
        }
    )
    return record


class SheetLogger:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._http_client = http_client

    @property
    def settings(self) -> Settings:
        return self._settings or config.settings

    async def _post(self, url: str, record: dict[str, Any]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(url, json=record)
        async with httpx.AsyncClient(
            timeout=self.settings.outbound_timeout_seconds
        ) as client:
            return await client.post(url, json=record)

    async def log(self, record: dict[str, Any]) -> None:
        """POST ``record`` to the webhook. Never raises."""
        url = self.settings.sheet_webhook_url
        if not url:
            return
        try:
            response = await self._post(url, record)
            if not response.is_success:
                logger.warning(
                    "Sheet webhook rejected submission",
                    extra={"status_code": response.status_code},
                )
        except Exception:
            logger.exception("Sheet webhook error")


sheet_logger = SheetLogger()


def get_sheet_logger() -> SheetLogger:
    return sheet_logger
