"""Centralized configuration for the Stemsmith client.

Defines immutable defaults for the API endpoint, polling cadence, request
timeouts and the model profiles offered at submission time, plus the mutable
``ClientSettings`` value that is handed to every component constructor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Config:
    """Immutable configuration defaults for the project."""

    # Endpoint
    DEFAULT_ENDPOINT: str = "http://localhost:8345"
    STORAGE_KEY: str = "stemsmith-api-base"

    # Loop cadence (seconds)
    POLL_INTERVAL: float = 1.5
    HEALTH_INTERVAL: float = 5.0

    # Status/cancel/health requests time out after a multiple of the poll interval
    REQUEST_TIMEOUT_FACTOR: float = 4.0
    TRANSFER_TIMEOUT: float = 300.0

    # Local paths
    DEFAULT_DOWNLOAD_DIR: Path = Path("downloads")
    DEFAULT_STATE_DIR: Path = Path.home() / ".stemsmith"


DEFAULT_MODEL: str = "balanced-four-stem"

PROFILE_STEMS: dict[str, list[str]] = {
    "balanced-four-stem": ["drums", "bass", "other", "vocals"],
    "balanced-six-stem": ["drums", "bass", "other", "vocals", "piano", "guitar"],
}

MODEL_LABELS: dict[str, str] = {
    "balanced-four-stem": "Balanced 4-Stem",
    "balanced-six-stem": "Balanced 6-Stem",
}

STEM_LABELS: dict[str, str] = {
    "drums": "Drums",
    "bass": "Bass",
    "other": "Other",
    "vocals": "Vocals",
    "piano": "Piano",
    "guitar": "Guitar",
}

WAV_CONTENT_TYPES: tuple[str, ...] = ("audio/wav", "audio/x-wav", "audio/wave")


@dataclass
class ClientSettings:
    """Runtime settings shared by the components of one client session.

    ``endpoint`` may change while requests are in flight; every request reads it
    when it is issued, so a change only affects later requests.
    """

    endpoint: str = Config.DEFAULT_ENDPOINT
    poll_interval: float = Config.POLL_INTERVAL
    health_interval: float = Config.HEALTH_INTERVAL
    transfer_timeout: float = Config.TRANSFER_TIMEOUT
    download_dir: Path = field(default_factory=lambda: Config.DEFAULT_DOWNLOAD_DIR)

    @property
    def request_timeout(self) -> float:
        return self.poll_interval * Config.REQUEST_TIMEOUT_FACTOR


_CONFIG_SINGLETON: Optional[Config] = None


def get_config() -> Config:
    """Return a singleton `Config` instance."""

    global _CONFIG_SINGLETON
    if _CONFIG_SINGLETON is None:
        _CONFIG_SINGLETON = Config()
    return _CONFIG_SINGLETON
