"""Contact notification delivery through Resend or an SMTP relay."""

from __future__ import annotations

import base64
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Union

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.concurrency import run_in_threadpool

from nomasoft import config
from nomasoft.config import Settings
from nomasoft.content import brand_name, site_contact_email
from nomasoft.errors import (
    ContactRecipientMissing,
    MailProviderNotConfigured,
    ResendRequestFailed,
)
from nomasoft.schemas.contact import Attachment

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

_templates = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(enabled_extensions=("html",)),
)


@dataclass(frozen=True)
class DeliveryPayload:
    name: str
    email: str
    message: str
    service: str
    service_label: str
    locale: str
    company: str | None = None
    attachment: Attachment | None = None


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    text: str
    html: str


@dataclass(frozen=True)
class NoProvider:
    pass


@dataclass(frozen=True)
class ResendTransport:
    api_key: str
    sender: str


@dataclass(frozen=True)
class SmtpTransport:
    host: str
    port: int
    secure: bool
    starttls: bool
    user: str | None
    password: str | None
    sender: str


MailTransport = Union[NoProvider, ResendTransport, SmtpTransport]


def resolve_recipient(settings: Settings) -> str | None:
    return settings.contact_to_email or site_contact_email()


def resolve_transport(settings: Settings, default_sender: str) -> MailTransport:
    """Pick the single transport to use: Resend first, then SMTP."""
    if settings.resend_api_key:
        return ResendTransport(
            api_key=settings.resend_api_key,
            sender=settings.resend_from_email or default_sender,
        )
    if settings.smtp_host:
        return SmtpTransport(
            host=settings.smtp_host,
            port=settings.smtp_port,
            secure=settings.smtp_secure,
            starttls=settings.smtp_starttls,
            user=settings.smtp_user,
            password=settings.smtp_password,
            sender=settings.smtp_from or default_sender,
        )
    return NoProvider()


def format_address(address: str) -> str:
    return f"{brand_name()} <{address}>"


def _header_text(value: str) -> str:
    # Header values may not carry CR/LF
    return " ".join(value.split())


def render_message(payload: DeliveryPayload) -> RenderedMessage:
    context = {"payload": payload, "message_lines": payload.message.split("\n")}
    subject = f"[{brand_name()}] {payload.name} — {payload.service_label}"
    return RenderedMessage(
        subject=_header_text(subject),
        text=_templates.get_template("contact_notification.txt").render(context),
        html=_templates.get_template("contact_notification.html").render(context),
    )


class Mailer:
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

    async def send(self, payload: DeliveryPayload) -> None:
        cfg = self.settings
        to_addr = resolve_recipient(cfg)
        if not to_addr:
            raise ContactRecipientMissing()

        transport = resolve_transport(cfg, cfg.contact_from_email or to_addr)
        message = render_message(payload)

        if isinstance(transport, ResendTransport):
            await self._send_resend(transport, to_addr, payload, message)
        elif isinstance(transport, SmtpTransport):
            await run_in_threadpool(
                self._send_smtp, transport, to_addr, payload, message
            )
        else:
            raise MailProviderNotConfigured()

        logger.info(
            "Contact notification sent",
            extra={"transport": type(transport).__name__, "service": payload.service},
        )

    def _resend_body(
        self,
        transport: ResendTransport,
        to_addr: str,
        payload: DeliveryPayload,
        message: RenderedMessage,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "from": format_address(transport.sender),
            "to": [to_addr],
            "reply_to": payload.email,
            "subject": message.subject,
            "text": message.text,
            "html": message.html,
        }
        if payload.attachment:
            attachment: dict[str, str] = {
                "filename": payload.attachment.filename,
                "content": base64.b64encode(payload.attachment.data).decode("ascii"),
            }
            if payload.attachment.content_type:
                attachment["content_type"] = payload.attachment.content_type
            body["attachments"] = [attachment]
        return body

    async def _send_resend(
        self,
        transport: ResendTransport,
        to_addr: str,
        payload: DeliveryPayload,
        message: RenderedMessage,
    ) -> None:
        body = self._resend_body(transport, to_addr, payload, message)
        headers = {"Authorization": f"Bearer {transport.api_key}"}
        if self._http_client is not None:
            response = await self._http_client.post(
                RESEND_API_URL, json=body, headers=headers
            )
        else:
            async with httpx.AsyncClient(
                timeout=self.settings.outbound_timeout_seconds
            ) as client:
                response = await client.post(RESEND_API_URL, json=body, headers=headers)

        if not response.is_success:
            logger.error(
                "Resend request failed",
                extra={"status_code": response.status_code, "details": response.text},
            )
            raise ResendRequestFailed(response.status_code, response.text)

    def _build_email(
        self,
        transport: SmtpTransport,
        to_addr: str,
        payload: DeliveryPayload,
        message: RenderedMessage,
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = format_address(transport.sender)
        msg["To"] = to_addr
        msg["Reply-To"] = payload.email
        msg["Subject"] = message.subject
        msg.set_content(message.text)
        msg.add_alternative(message.html, subtype="html")

        if payload.attachment:
            content_type = (
                payload.attachment.content_type or "application/octet-stream"
            )
            maintype, _, subtype = content_type.partition("/")
            msg.add_attachment(
                payload.attachment.data,
                maintype=maintype,
                subtype=subtype or "octet-stream",
                filename=payload.attachment.filename,
            )
        return msg

    def _send_smtp(
        self,
        transport: SmtpTransport,
        to_addr: str,
        payload: DeliveryPayload,
        message: RenderedMessage,
    ) -> None:
        msg = self._build_email(transport, to_addr, payload, message)
        timeout = self.settings.outbound_timeout_seconds

        if transport.secure:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(
                transport.host, transport.port, context=context, timeout=timeout
            ) as smtp:
                if transport.user:
                    smtp.login(transport.user, transport.password or "")
                smtp.send_message(msg)
            return

        with smtplib.SMTP(transport.host, transport.port, timeout=timeout) as smtp:
            smtp.ehlo()
            if transport.starttls and smtp.has_extn("starttls"):
                context = ssl.create_default_context()
                smtp.starttls(context=context)
                smtp.ehlo()
            if transport.user:
                smtp.login(transport.user, transport.password or "")
            smtp.send_message(msg)


mailer = Mailer()


def get_mailer() -> Mailer:
    return mailer
