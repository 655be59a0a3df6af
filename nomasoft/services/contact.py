"""Server-side contact submission pipeline.

validate -> captcha -> resolve service label -> deliver -> schedule side-log.
Every failure is translated into the stable ``{"error": code}`` contract.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from fastapi import BackgroundTasks
from starlette.datastructures import UploadFile

from nomasoft.content import service_label
from nomasoft.errors import (
    CaptchaFailed,
    ContactError,
    ContactRecipientMissing,
    ContactValidationError,
    MailProviderNotConfigured,
)
from nomasoft.i18n import get_translator, resolve_locale
from nomasoft.observability.metrics import record_contact_outcome
from nomasoft.schemas.contact import (
    HONEYPOT_FIELD,
    MAX_FILE_SIZE,
    Attachment,
    ContactSubmission,
    parse_contact,
)
from nomasoft.services.captcha import CaptchaVerifier
from nomasoft.services.mailer import DeliveryPayload, Mailer
from nomasoft.services.sheet_logger import SheetLogger, build_sheet_record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContactResult:
    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


def _optional_text(value: Any) -> Any:
    if isinstance(value, str):
        return value or None
    return value


async def read_attachment(value: Any) -> Attachment | None:
    """Read an uploaded file, treating empty or unnamed uploads as absent.

    The multipart parser has already spooled the upload; at most
    ``MAX_FILE_SIZE + 1`` bytes are copied into memory, which is enough for
    the size check to reject oversized files.
    """
    if not isinstance(value, UploadFile) or not value.filename:
        return None
    data = await value.read(MAX_FILE_SIZE + 1)
    if not data:
        return None
    return Attachment(
        filename=value.filename,
        data=data,
        content_type=value.content_type or None,
    )


async def form_fields(form: Mapping[str, Any]) -> dict[str, Any]:
    """Map the multipart form onto the fields the contact schema expects."""
    return {
        "name": form.get("name"),
        "email": form.get("email"),
        "company": _optional_text(form.get("company")),
        "message": form.get("message"),
        "service": form.get("service"),
        "token": _optional_text(form.get("token")),
        "honeypot": _optional_text(form.get(HONEYPOT_FIELD)),
        "file": await read_attachment(form.get("file")),
    }


class ContactService:
    def __init__(
        self,
        captcha: CaptchaVerifier,
        mailer: Mailer,
        sheet_logger: SheetLogger,
    ) -> None:
        self.captcha = captcha
        self.mailer = mailer
        self.sheet_logger = sheet_logger

    async def submit(
        self, form: Mapping[str, Any], background_tasks: BackgroundTasks
    ) -> ContactResult:
        try:
            await self._process(form, background_tasks)
        except ContactValidationError as exc:
            record_contact_outcome(exc.code)
            return ContactResult(
                exc.status_code, {"error": exc.code, "errors": exc.errors}
            )
        except CaptchaFailed as exc:
            logger.info("Contact submission rejected by captcha")
            record_contact_outcome(exc.code)
            return ContactResult(exc.status_code, {"error": exc.code})
        except (ContactRecipientMissing, MailProviderNotConfigured) as exc:
            logger.error(
                "Contact delivery is not configured: %s",
                exc.code,
                extra={"hint": _CONFIG_HINTS[type(exc)]},
            )
            record_contact_outcome(exc.code)
            return ContactResult(exc.status_code, {"error": exc.code})
        except ContactError as exc:
            logger.error("Contact delivery failed: %s", exc)
            record_contact_outcome(exc.code)
            return ContactResult(exc.status_code, {"error": exc.code})
        except Exception:
            logger.exception("Contact form error")
            record_contact_outcome(ContactError.code)
            return ContactResult(ContactError.status_code, {"error": ContactError.code})

        record_contact_outcome("ok")
        return ContactResult(200, {"ok": True})

    async def _process(
        self, form: Mapping[str, Any], background_tasks: BackgroundTasks
    ) -> None:
        raw_locale = form.get("locale")
        locale = resolve_locale(raw_locale if isinstance(raw_locale, str) else None)
        submission = parse_contact(await form_fields(form), get_translator(locale))

        if not await self.captcha.verify(submission.token):
            raise CaptchaFailed()

        label = service_label(submission.service, locale)
        await self.mailer.send(_delivery_payload(submission, label, locale))

        background_tasks.add_task(
            self._side_log,
            build_sheet_record(
                name=submission.name,
                email=submission.email,
                company=submission.company,
                message=submission.message,
                service_key=submission.service,
                service_label=label,
                locale=locale,
            ),
        )

    async def _side_log(self, record: dict[str, Any]) -> None:
        # Runs after the response is sent; nothing may escape into the server
        try:
            await self.sheet_logger.log(record)
        except Exception:
            logger.exception("Side-logging failed")


_CONFIG_HINTS = {
    ContactRecipientMissing: "set CONTACT_TO_EMAIL or site.contact.email",
    MailProviderNotConfigured: "set RESEND_API_KEY or SMTP_HOST",
}


def _delivery_payload(
    submission: ContactSubmission, label: str, locale: str
) -> DeliveryPayload:
    return DeliveryPayload(
        name=submission.name,
        email=submission.email,
        company=submission.company,
        message=submission.message,
        service=submission.service,
        service_label=label,
        locale=locale,
        attachment=submission.file,
    )
