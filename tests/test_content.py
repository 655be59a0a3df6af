"""Tests for site content, locale resolution and translations."""

from __future__ import annotations

from pathlib import Path

import pytest

from nomasoft.content import (
    brand_name,
    service_label,
    service_options,
    site_contact_email,
    site_locales,
)
from nomasoft.i18n import get_translator, is_locale, resolve_locale
from nomasoft.utils.yaml_loader import load_yaml


def test_site_defaults():
    assert brand_name() == "NomaSoft"
    assert site_contact_email() == "hello@nomasoft.dev"
    assert site_locales() == ["en", "fr"]


@pytest.mark.parametrize(
    ("key", "locale", "expected"),
    [
        ("web", "en", "Web applications"),
        ("web", "fr", "Applications web"),
        ("quantum", "en", "quantum"),
        ("web", "de", "web"),
    ],
)
def test_service_label(key, locale, expected):
    assert service_label(key, locale) == expected


def test_service_options_follow_catalog_order():
    keys = [option["key"] for option in service_options("en")]
    assert keys[0] == "web"
    assert len(keys) == len(set(keys))


def test_locale_resolution():
    assert is_locale("fr")
    assert not is_locale("xx")
    assert not is_locale(None)
    assert resolve_locale("fr") == "fr"
    assert resolve_locale("xx") == "en"
    assert resolve_locale(None) == "en"


def test_translator_lookup_and_fallbacks():
    t = get_translator("fr")
    assert t("validation.email") == "Indiquez une adresse courriel valide."
    assert t("validation.name") == "validation.name"
    assert t("does.not.exist") == "does.not.exist"
    assert get_translator("xx")("validation.email") == "Provide a valid email address."


def test_load_yaml_normalizes_newlines(tmp_path: Path):
    path = tmp_path / "catalog.yaml"
    path.write_bytes(b"a: 1\r\nb: two\r\n")
    assert load_yaml(path) == {"a": 1, "b": "two"}


def test_load_yaml_rejects_empty_file(tmp_path: Path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ValueError, match="empty"):
        load_yaml(path)
