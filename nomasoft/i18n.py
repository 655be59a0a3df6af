"""Locale resolution and message catalogs."""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Any

from nomasoft.config import settings
from nomasoft.content import site_locales
from nomasoft.utils.yaml_loader import load_yaml

LOCALES_DIR = Path(__file__).parent / "locales"

Translator = Callable[[str], str]


def is_locale(locale: str | None) -> bool:
    return bool(locale) and locale in site_locales()


def default_locale() -> str:
    configured = settings.default_locale
    return configured if is_locale(configured) else site_locales()[0]


def resolve_locale(locale: str | None) -> str:
    """Return ``locale`` when supported, otherwise the default locale."""
    return locale if locale and is_locale(locale) else default_locale()


@lru_cache(maxsize=8)
def load_messages(locale: str) -> dict[str, Any]:
    return load_yaml(LOCALES_DIR / f"{locale}.yaml")


def _lookup(messages: dict[str, Any], key: str) -> str | None:
    node: Any = messages
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


def get_translator(locale: str) -> Translator:
    """Build a ``key -> message`` function for ``locale``.

    Unknown keys fall back to the default locale, then to the key itself.
    """
    messages = load_messages(resolve_locale(locale))
    fallback = load_messages(default_locale())

    def translate(key: str) -> str:
        return _lookup(messages, key) or _lookup(fallback, key) or key

    return translate
