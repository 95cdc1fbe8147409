from __future__ import annotations

import os
from pathlib import Path

from stemclient.utils import ensure_dir


APP_DIR_NAME = "Stemsmith"


def app_base_dir() -> Path:
    """Per-user data directory: %LOCALAPPDATA% on Windows, XDG data home elsewhere."""

    root = (
        os.environ.get("LOCALAPPDATA")
        or os.environ.get("APPDATA")
        or os.environ.get("XDG_DATA_HOME")
        or str(Path.home() / ".local" / "share")
    )
    base = Path(root) / APP_DIR_NAME
    ensure_dir(base)
    return base


def downloads_dir() -> Path:
    """Where stems archives are saved; the user's choice from settings wins."""

    try:
        from app.core.settings import load_settings

        chosen = load_settings().download_dir
        if chosen:
            d = Path(chosen).expanduser()
            ensure_dir(d)
            return d
    except OSError:
        pass
    d = app_base_dir() / "downloads"
    ensure_dir(d)
    return d


def logs_dir() -> Path:
    d = app_base_dir() / "logs"
    ensure_dir(d)
    return d
