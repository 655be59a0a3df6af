"""Application settings for the contact service."""

from __future__ import annotations

import json
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_OPTIONAL_STRINGS = (
    "contact_to_email",
    "contact_from_email",
    "resend_api_key",
    "resend_from_email",
    "smtp_host",
    "smtp_user",
    "smtp_password",
    "smtp_from",
    "turnstile_secret",
    "turnstile_site_key",
    "hcaptcha_secret",
    "hcaptcha_site_key",
    "sheet_webhook_url",
    "otlp_endpoint",
    "otlp_headers",
    "metrics_password",
)


class Settings(BaseSettings):
    """Central configuration entrypoint for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "test", "staging", "production"] = (
        "development"
    )
    debug: bool = True

    # Server
    allowed_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    default_locale: str = "en"

    # Observability
    log_level: str = "INFO"
    enable_tracing: bool = False
    otlp_endpoint: str | None = None
    otlp_headers: str | None = None

    # Metrics endpoint authentication
    metrics_username: str = "prometheus"
    metrics_password: str | None = None

    # Outbound HTTP (captcha, Resend, sheet webhook)
    outbound_timeout_seconds: float = 10.0

    # Contact delivery
    contact_to_email: str | None = None
    contact_from_email: str | None = None
    resend_api_key: str | None = None
    resend_from_email: str | None = None

    # SMTP relay
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_secure: bool = False
    smtp_starttls: bool = True
    smtp_user: str | None = None
    smtp_password: str | None = Field(
        default=None,
        validation_alias=AliasChoices("smtp_password", "SMTP_PASS"),
    )
    smtp_from: str | None = None

    # Captcha providers
    turnstile_secret: str | None = None
    turnstile_site_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "turnstile_site_key", "NEXT_PUBLIC_TURNSTILE_SITE_KEY"
        ),
    )
    hcaptcha_secret: str | None = None
    hcaptcha_site_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "hcaptcha_site_key", "NEXT_PUBLIC_HCAPTCHA_SITE_KEY"
        ),
    )
    hcaptcha_use_prod_keys_in_dev: bool = False

    # Side-logging
    sheet_webhook_url: str | None = None

    @field_validator(*_OPTIONAL_STRINGS, mode="before")
    @classmethod
    def blank_as_unset(cls, value: str | None) -> str | None:
        """Treat empty or whitespace-only env values as missing."""
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: str | list[str] | None) -> list[str]:
        """Normalize ALLOWED_ORIGINS env input into a list."""
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return []
            if raw.startswith("["):
                try:
                    parsed = json.loads(raw)
                    if isinstance(parsed, list):
                        return parsed
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in raw.split(",") if item.strip()]
        return []

    @property
    def is_production(self) -> bool:
        """Return True when running in production."""
        return self.environment == "production"

    @property
    def cors_origins(self) -> list[str]:
        """Expose allowed CORS origins for middleware wiring."""
        return self.allowed_origins


settings = Settings()
