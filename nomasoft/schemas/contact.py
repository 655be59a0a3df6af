from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator

from nomasoft.errors import ContactValidationError
from nomasoft.i18n import Translator

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 80
MAX_COMPANY_LENGTH = 120
MIN_MESSAGE_LENGTH = 12
MAX_MESSAGE_LENGTH = 600
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5 MiB

HONEYPOT_FIELD = "company-website"

# field -> pydantic error type -> translation key; ``None`` is the fallback
_ERROR_KEYS: dict[str, dict[str | None, str]] = {
    "name": {
        "string_too_long": "validation.name.max",
        None: "validation.name.min",
    },
    "email": {None: "validation.email"},
    "company": {None: "validation.company.max"},
    "message": {
        "string_too_long": "validation.message.max",
        None: "validation.message.min",
    },
    "service": {None: "validation.service"},
    "file": {None: "validation.file.size"},
}


class Attachment(BaseModel):
    filename: str
    data: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


class ContactSubmission(BaseModel):
    name: str = Field(min_length=MIN_NAME_LENGTH, max_length=MAX_NAME_LENGTH)
    email: EmailStr
    company: str | None = Field(default=None, max_length=MAX_COMPANY_LENGTH)
    message: str = Field(min_length=MIN_MESSAGE_LENGTH, max_length=MAX_MESSAGE_LENGTH)
    service: str = Field(min_length=1)
    token: str | None = None
    honeypot: str | None = None
    file: Attachment | None = None

    @field_validator("company")
    @classmethod
    def blank_company_as_absent(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("file")
    @classmethod
    def validate_file_size(cls, value: Attachment | None) -> Attachment | None:
        if value is not None and value.size > MAX_FILE_SIZE:
            raise ValueError("file too large")
        return value


def _error_message(field: str, error: Mapping[str, Any], t: Translator) -> str:
    keys = _ERROR_KEYS.get(field)
    if not keys:
        return str(error.get("msg", "invalid"))
    return t(keys.get(error.get("type"), keys[None]))


def parse_contact(raw: Mapping[str, Any], t: Translator) -> ContactSubmission:
    """Validate raw contact fields and return the normalized submission.

    Raises ``ContactValidationError`` holding one localized message per
    failing field. A filled honeypot always fails validation, whatever the
    other fields look like.
    """
    errors: dict[str, str] = {}
    submission: ContactSubmission | None = None
    try:
        submission = ContactSubmission.model_validate(dict(raw))
    except ValidationError as exc:
        for error in exc.errors():
            loc = error.get("loc") or ("__root__",)
            field = str(loc[0])
            if field not in errors:
                errors[field] = _error_message(field, error, t)

    honeypot = raw.get("honeypot")
    if honeypot:
        errors["honeypot"] = t("validation.bot")

    if errors or submission is None:
        raise ContactValidationError(errors)
    return submission


def collect_errors(raw: Mapping[str, Any], t: Translator) -> dict[str, str]:
    """Return field errors without raising; empty when the input is valid."""
    try:
        parse_contact(raw, t)
    except ContactValidationError as exc:
        return exc.errors
    return {}
