"""Last-used API endpoint: normalization and best-effort persistence.

Persistence is an injected ``(load, save)`` pair so callers decide where the
value lives (a JSON file for the CLI, the desktop settings file for the app).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional
import logging

from stemclient.config import Config
from stemclient.utils import read_json, write_json


_LOGGER = logging.getLogger(__name__)


def normalize_endpoint(value: str) -> str:
    """Strip whitespace and a trailing slash: ``" http://h:1/ "`` -> ``"http://h:1"``."""

    return value.strip().rstrip("/")


@dataclass(frozen=True)
class EndpointStore:
    load: Callable[[], Optional[str]]
    save: Callable[[str], None]


def load_endpoint(store: Optional[EndpointStore], default: str = Config.DEFAULT_ENDPOINT) -> str:
    if store is None:
        return default
    try:
        value = store.load()
    except Exception as e:
        _LOGGER.debug("could not read saved endpoint: %s", e)
        return default
    return normalize_endpoint(value) if value and value.strip() else default


def save_endpoint(store: Optional[EndpointStore], value: str) -> None:
    if store is None:
        return
    try:
        store.save(value)
    except Exception as e:
        # Best-effort; the in-memory value still applies
        _LOGGER.debug("could not persist endpoint: %s", e)


def json_file_store(path: Path, key: str = Config.STORAGE_KEY) -> EndpointStore:
    """Keep the endpoint under ``key`` in the JSON object stored at ``path``."""

    def _load() -> Optional[str]:
        if not path.exists():
            return None
        data = read_json(path)
        return data.get(key) if isinstance(data, dict) else None

    def _save(value: str) -> None:
        data = read_json(path) if path.exists() else {}
        if not isinstance(data, dict):
            data = {}
        data[key] = value
        write_json(path, data)

    return EndpointStore(load=_load, save=_save)


def memory_store(initial: Optional[str] = None) -> EndpointStore:
    box = {"value": initial}

    def _save(value: str) -> None:
        box["value"] = value

    return EndpointStore(load=lambda: box["value"], save=_save)
