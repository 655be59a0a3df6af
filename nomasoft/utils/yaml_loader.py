"""YAML IO helpers with newline coercion."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def _coerce_newlines(raw: str) -> str:
    return raw.replace("\r\n", "\n").replace("\r", "\n")


def load_yaml(path: Path) -> Any:
    raw = _coerce_newlines(path.read_text(encoding="utf-8"))
    data = yaml.safe_load(raw)
    if data is None:
        raise ValueError(f"{path.name} is empty")
    return data
