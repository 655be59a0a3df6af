"""Site content: brand name, contact address and the service catalog."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from nomasoft.utils.yaml_loader import load_yaml

SITE_CONTENT_PATH = Path(__file__).parent / "data" / "site.yaml"
DEFAULT_BRAND_NAME = "NomaSoft"


@lru_cache(maxsize=1)
def load_site_content() -> dict[str, Any]:
    return load_yaml(SITE_CONTENT_PATH)


def brand_name() -> str:
    return load_site_content().get("site", {}).get("name") or DEFAULT_BRAND_NAME


def site_contact_email() -> str | None:
    contact = load_site_content().get("site", {}).get("contact") or {}
    return contact.get("email") or None


def site_locales() -> list[str]:
    return list(load_site_content().get("site", {}).get("locales") or ["en"])


def services() -> list[dict[str, Any]]:
    return list(load_site_content().get("services") or [])


def get_service(key: str) -> dict[str, Any] | None:
    for service in services():
        if service.get("key") == key:
            return service
    return None


def service_label(key: str, locale: str) -> str:
    """Return the localized service title, falling back to the raw key."""
    service = get_service(key)
    if not service:
        return key
    return (service.get("title") or {}).get(locale) or key


def service_options(locale: str) -> list[dict[str, str]]:
    """Service selector entries for the contact form."""
    return [
        {"key": service["key"], "label": service_label(service["key"], locale)}
        for service in services()
    ]
