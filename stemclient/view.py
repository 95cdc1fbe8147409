"""Derived, side-effect free views over job snapshots.

The cancel-requested flag is held locally and layered over the last remote
snapshot here, so both the desktop app and the CLI render the same state.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from stemclient.models import JobState, JobStatus


class EffectiveState(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"
    CANCELLING = "cancelling"


def display_state(snapshot: Optional[JobStatus], cancel_requested: bool) -> EffectiveState:
    """Combine the remote snapshot with the local cancel flag.

    A terminal snapshot always wins; the overlay only applies while the job is
    still (as far as we know) queued, running or unknown.
    """

    status = snapshot.status if snapshot is not None else JobState.UNKNOWN
    if status.is_terminal:
        return EffectiveState(status.value)
    if cancel_requested:
        return EffectiveState.CANCELLING
    return EffectiveState(status.value)


def can_download(snapshot: Optional[JobStatus], downloading: bool = False) -> bool:
    return snapshot is not None and snapshot.status is JobState.COMPLETED and not downloading


def progress_percent(snapshot: Optional[JobStatus]) -> Optional[int]:
    """Rounded percentage, or None when the server has not reported progress."""

    if snapshot is None or not snapshot.has_progress:
        return None
    return int(round(max(0.0, min(1.0, snapshot.progress)) * 100))


def format_progress(snapshot: Optional[JobStatus]) -> str:
    pct = progress_percent(snapshot)
    return "--" if pct is None else f"{pct}%"


def visible_error(snapshot: Optional[JobStatus]) -> Optional[str]:
    if snapshot is None or snapshot.status is JobState.CANCELLED:
        return None
    return snapshot.error_message
