"""Async contact form client mirroring the website's submit flow.

The client validates locally for fast feedback, then posts a multipart
submission to ``/api/contact``. The server repeats the validation and its
answer is the one that counts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

import httpx

from nomasoft.errors import ContactValidationError
from nomasoft.i18n import get_translator, resolve_locale
from nomasoft.schemas.contact import HONEYPOT_FIELD, Attachment, parse_contact

logger = logging.getLogger(__name__)

CONTACT_ENDPOINT = "/api/contact"


class FormStatus(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class ContactFormClient:
    def __init__(
        self,
        locale: str,
        *,
        http_client: httpx.AsyncClient,
        endpoint: str = CONTACT_ENDPOINT,
        on_reset: Callable[[], None] | None = None,
        on_captcha_reset: Callable[[], None] | None = None,
    ) -> None:
        self.locale = resolve_locale(locale)
        self.http_client = http_client
        self.endpoint = endpoint
        self.on_reset = on_reset
        self.on_captcha_reset = on_captcha_reset
        self.status = FormStatus.IDLE
        self.errors: dict[str, str] = {}
        self.captcha_token: str | None = None
        self._translate = get_translator(self.locale)

    @property
    def busy(self) -> bool:
        return self.status in (FormStatus.VALIDATING, FormStatus.SUBMITTING)

    def set_captcha_token(self, token: str | None) -> None:
        self.captcha_token = token or None

    def reset_captcha(self) -> None:
        self.captcha_token = None
        if self.on_captcha_reset:
            self.on_captcha_reset()

    async def submit(self, fields: Mapping[str, Any]) -> FormStatus:
        """Run one submit cycle; ignored while a previous one is in flight."""
        if self.busy:
            logger.debug("Ignoring submit while %s", self.status.value)
            return self.status

        self.status = FormStatus.VALIDATING
        self.errors = {}
        raw = {
            "name": fields.get("name"),
            "email": fields.get("email"),
            "company": fields.get("company") or None,
            "message": fields.get("message"),
            "service": fields.get("service"),
            "token": self.captcha_token,
            "honeypot": fields.get(HONEYPOT_FIELD) or None,
            "file": fields.get("file"),
        }
        try:
            submission = parse_contact(raw, self._translate)
        except ContactValidationError as exc:
            self.errors = exc.errors
            self.status = FormStatus.IDLE
            return self.status

        self.status = FormStatus.SUBMITTING
        parts: list[tuple[str, tuple[str | None, Any] | tuple[str, bytes, str]]] = [
            ("name", (None, submission.name)),
            ("email", (None, submission.email)),
        ]
        if submission.company:
            parts.append(("company", (None, submission.company)))
        parts.append(("message", (None, submission.message)))
        parts.append(("service", (None, submission.service)))
        if submission.token:
            parts.append(("token", (None, submission.token)))
        if submission.file:
            parts.append(("file", _file_part(submission.file)))
        parts.append(("locale", (None, self.locale)))

        try:
            response = await self.http_client.post(self.endpoint, files=parts)
            response.raise_for_status()
        except asyncio.CancelledError:
            self.status = FormStatus.IDLE
            raise
        except httpx.HTTPError as exc:
            logger.warning("Contact submission failed: %s", exc)
            self.status = FormStatus.ERROR
            return self.status
        except Exception:
            logger.exception("Contact submission failed")
            self.status = FormStatus.ERROR
            return self.status

        self.status = FormStatus.SUCCESS
        if self.on_reset:
            self.on_reset()
        self.reset_captcha()
        return self.status


def _file_part(attachment: Attachment) -> tuple[str, bytes, str]:
    return (
        attachment.filename,
        attachment.data,
        attachment.content_type or "application/octet-stream",
    )
