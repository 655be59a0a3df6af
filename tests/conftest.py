"""Test fixtures for the contact API and its services."""

from __future__ import annotations

import os
from collections.abc import Callable

# Pin the environment *before* importing nomasoft modules: "development"
# would swap in the hCaptcha test keys and turn captcha on.
os.environ["ENVIRONMENT"] = "test"
for _key in (
    "CONTACT_TO_EMAIL",
    "CONTACT_FROM_EMAIL",
    "RESEND_API_KEY",
    "SMTP_HOST",
    "TURNSTILE_SECRET",
    "TURNSTILE_SITE_KEY",
    "HCAPTCHA_SECRET",
    "HCAPTCHA_SITE_KEY",
    "NEXT_PUBLIC_HCAPTCHA_SITE_KEY",
    "NEXT_PUBLIC_TURNSTILE_SITE_KEY",
    "SHEET_WEBHOOK_URL",
    "METRICS_PASSWORD",
):
    os.environ.pop(_key, None)

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from nomasoft.config import Settings  # noqa: E402
from nomasoft.main import app  # noqa: E402
from nomasoft.security.rate_limit import limiter  # noqa: E402

# Disable rate limiting in tests to prevent cross-test 429 flakes
limiter.enabled = False

VALID_FORM = {
    "name": "Ada Lovelace",
    "email": "ada@example.com",
    "company": "Analytical Engines",
    "message": (
        "Looking to collaborate on a new project. "
        "Let us know your availability times."
    ),
    "service": "web",
    "locale": "en",
}


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it answered."""

    def __init__(
        self,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> None:
        self.requests: list[httpx.Request] = []
        self._handler = handler or (lambda request: httpx.Response(200, json={}))
        super().__init__(self._record)

    def _record(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    @property
    def call_count(self) -> int:
        return len(self.requests)


def make_settings(**overrides) -> Settings:
    values = {"environment": "test"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return make_settings


@pytest.fixture
def recording_transport() -> Callable[..., RecordingTransport]:
    return RecordingTransport


@pytest.fixture
def valid_form() -> dict[str, str]:
    return dict(VALID_FORM)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
