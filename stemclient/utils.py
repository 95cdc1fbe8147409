"""Shared filesystem helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any
import json


def ensure_dir(path: Path) -> None:
    """Create directory ``path`` and parents if they don't exist."""

    path.mkdir(parents=True, exist_ok=True)


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8") or "null")


def write_json(path: Path, obj: Any) -> None:
    ensure_dir(path.parent)
    path.write_text(json.dumps(obj, ensure_ascii=False, indent=2), encoding="utf-8")


def format_size(num_bytes: int) -> str:
    """Return ``num_bytes`` as megabytes with two decimals, e.g. ``"10.00 MB"``."""

    return f"{num_bytes / 1024 / 1024:.2f} MB"
