"""Bot-mitigation token verification for hCaptcha and Cloudflare Turnstile."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import httpx
from pydantic import BaseModel, ConfigDict, Field

from nomasoft import config
from nomasoft.config import Settings

logger = logging.getLogger(__name__)

HCAPTCHA_VERIFY_URL = "https://hcaptcha.com/siteverify"
TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"

# Published hCaptcha test pair, always passes verification
HCAPTCHA_DEV_SITE_KEY = "10000000-ffff-ffff-ffff-000000000001"
HCAPTCHA_DEV_SECRET = "0x0000000000000000000000000000000000000000"


class CaptchaProvider(str, Enum):
    HCAPTCHA = "hcaptcha"
    TURNSTILE = "turnstile"


@dataclass(frozen=True)
class CaptchaConfig:
    type: CaptchaProvider
    site_key: str
    secret: str


class CaptchaClientConfig(BaseModel):
    """Public subset of the captcha configuration, safe to embed in pages."""

    model_config = ConfigDict(populate_by_name=True)

    type: CaptchaProvider
    site_key: str = Field(serialization_alias="siteKey")


@dataclass(frozen=True)
class _CaptchaKeys:
    hcaptcha_secret: str | None
    hcaptcha_site_key: str | None
    turnstile_secret: str | None
    turnstile_site_key: str | None


class CaptchaWarningState:
    """Remembers whether the partial-configuration warning was emitted."""

    def __init__(self) -> None:
        self.warned = False


class CaptchaVerifier:
    """Resolve the configured captcha provider and verify submitted tokens."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        warning_state: CaptchaWarningState | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self.warning_state = warning_state or CaptchaWarningState()
        self._http_client = http_client

    @property
    def settings(self) -> Settings:
        return self._settings or config.settings

    def _read_keys(self) -> _CaptchaKeys:
        cfg = self.settings
        use_dev_fallback = (
            cfg.environment == "development" and not cfg.hcaptcha_use_prod_keys_in_dev
        )
        return _CaptchaKeys(
            hcaptcha_secret=(
                HCAPTCHA_DEV_SECRET if use_dev_fallback else cfg.hcaptcha_secret
            ),
            hcaptcha_site_key=(
                HCAPTCHA_DEV_SITE_KEY if use_dev_fallback else cfg.hcaptcha_site_key
            ),
            turnstile_secret=cfg.turnstile_secret,
            turnstile_site_key=cfg.turnstile_site_key,
        )

    def _warn_partial(self, keys: _CaptchaKeys) -> None:
        if self.warning_state.warned:
            return
        hcaptcha_partial = bool(keys.hcaptcha_secret) != bool(keys.hcaptcha_site_key)
        turnstile_partial = bool(keys.turnstile_secret) != bool(
            keys.turnstile_site_key
        )
        if hcaptcha_partial or turnstile_partial:
            logger.warning(
                "Captcha keys are partially configured; skipping verification "
                "until both site key and secret are set",
                extra={
                    "hcaptcha_partial": hcaptcha_partial,
                    "turnstile_partial": turnstile_partial,
                },
            )
            self.warning_state.warned = True

    def resolve_config(self) -> CaptchaConfig | None:
        """Return the active provider, Turnstile taking precedence."""
        keys = self._read_keys()
        if keys.turnstile_secret and keys.turnstile_site_key:
            return CaptchaConfig(
                type=CaptchaProvider.TURNSTILE,
                site_key=keys.turnstile_site_key,
                secret=keys.turnstile_secret,
            )
        if keys.hcaptcha_secret and keys.hcaptcha_site_key:
            return CaptchaConfig(
                type=CaptchaProvider.HCAPTCHA,
                site_key=keys.hcaptcha_site_key,
                secret=keys.hcaptcha_secret,
            )
        self._warn_partial(keys)
        return None

    def client_config(self) -> CaptchaClientConfig | None:
        resolved = self.resolve_config()
        if resolved is None:
            return None
        return CaptchaClientConfig(type=resolved.type, site_key=resolved.site_key)

    async def _post(self, resolved: CaptchaConfig, token: str) -> httpx.Response:
        payload = {"secret": resolved.secret, "response": token}
        if self._http_client is not None:
            return await self._send(self._http_client, resolved, payload)
        async with httpx.AsyncClient(
            timeout=self.settings.outbound_timeout_seconds
        ) as client:
            return await self._send(client, resolved, payload)

    @staticmethod
    async def _send(
        client: httpx.AsyncClient, resolved: CaptchaConfig, payload: dict[str, str]
    ) -> httpx.Response:
        if resolved.type is CaptchaProvider.HCAPTCHA:
            return await client.post(HCAPTCHA_VERIFY_URL, data=payload)
        return await client.post(TURNSTILE_VERIFY_URL, json=payload)

    async def verify(self, token: str | None) -> bool:
        """Check ``token`` with the active provider.

        Disabled captcha always passes; an enabled provider with no token, an
        unreachable provider or an unreadable answer fails closed.
        """
        resolved = self.resolve_config()
        if resolved is None:
            return True
        if not token:
            return False

        try:
            response = await self._post(resolved, token)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPError as exc:
            logger.warning(
                "Captcha verification request failed: %s",
                exc,
                extra={"provider": resolved.type.value},
            )
            return False
        except ValueError:
            logger.warning(
                "Captcha provider returned an unreadable response",
                extra={"provider": resolved.type.value},
            )
            return False

        return isinstance(result, dict) and result.get("success") is True


captcha_verifier = CaptchaVerifier()


def get_captcha_verifier() -> CaptchaVerifier:
    return captcha_verifier
