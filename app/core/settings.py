from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from typing import Optional

from app.core.paths import app_base_dir
from stemclient.config import Config
from stemclient.endpoint import EndpointStore


SETTINGS_FILE = app_base_dir() / "settings.json"


@dataclass
class Settings:
    api_base: Optional[str] = None  # None -> Config.DEFAULT_ENDPOINT
    download_dir: Optional[str] = None
    poll_interval: float = Config.POLL_INTERVAL
    health_interval: float = Config.HEALTH_INTERVAL


def _default_settings() -> Settings:
    return Settings()


def load_settings() -> Settings:
    try:
        if SETTINGS_FILE.exists():
            data = json.loads(SETTINGS_FILE.read_text(encoding="utf-8"))
            known = {k: v for k, v in data.items() if k in asdict(_default_settings())}
            return Settings(**{**asdict(_default_settings()), **known})
    except Exception:
        pass
    return _default_settings()


def save_settings(s: Settings) -> None:
    try:
        SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
        SETTINGS_FILE.write_text(json.dumps(asdict(s), ensure_ascii=False, indent=2), encoding="utf-8")
    except Exception:
        # Best-effort; the running session keeps its in-memory values
        pass


def _save_api_base(value: str) -> None:
    s = load_settings()
    s.api_base = value
    save_settings(s)


def endpoint_store() -> EndpointStore:
    """Persist the last-used endpoint inside settings.json."""

    return EndpointStore(load=lambda: load_settings().api_base, save=_save_api_base)
