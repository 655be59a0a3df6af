"""Contact pipeline errors carrying a stable, client-facing code."""

from __future__ import annotations


class ContactError(Exception):
    """Base class for failures mapped onto the ``{"error": code}`` contract."""

    code = "invalid_request"
    status_code = 500

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)


class ContactValidationError(ContactError):
    code = "validation_error"
    status_code = 422

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__(f"invalid fields: {', '.join(sorted(errors))}")
        self.errors = errors


class CaptchaFailed(ContactError):
    code = "captcha_failed"
    status_code = 400


class ContactRecipientMissing(ContactError):
    code = "contact_recipient_missing"
    status_code = 500


class MailProviderNotConfigured(ContactError):
    code = "mail_provider_not_configured"
    status_code = 500


class ResendRequestFailed(ContactError):
    code = "email_failed"
    status_code = 502

    def __init__(self, status: int, details: str) -> None:
        super().__init__(f"Resend responded {status}")
        self.status = status
        self.details = details
