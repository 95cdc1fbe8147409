"""
stemclient: client for the Stemsmith audio stem separation service.

Uploads WAV files with a processing configuration, tracks the remote jobs
until they finish and downloads the separated stems.
"""

__all__ = [
    "Config",
    "ClientSettings",
    "get_config",
    "__version__",
    # Data model
    "JobConfig",
    "JobHandle",
    "JobState",
    "JobStatus",
    "HealthState",
    # Errors
    "StemClientError",
    "TransportError",
    "NotFoundError",
    "ServerError",
    "ValidationError",
    "UploadError",
    "DownloadError",
    "CancelError",
    # Components (lazy-imported via __getattr__)
    "JobApiClient",
    "EventLoop",
    "JobStatusPoller",
    "HealthProber",
    "UploadCoordinator",
    "DownloadTrigger",
    "JobOrchestrator",
    "display_state",
]

__version__ = "0.1.0"

from typing import Any

from stemclient.config import ClientSettings, Config, get_config
from stemclient.errors import (
    CancelError,
    DownloadError,
    NotFoundError,
    ServerError,
    StemClientError,
    TransportError,
    UploadError,
    ValidationError,
)
from stemclient.models import HealthState, JobConfig, JobHandle, JobState, JobStatus


def __getattr__(name: str) -> Any:  # lazy imports for the network-facing components
    if name == "JobApiClient":
        from stemclient.api import JobApiClient as _C

        return _C
    if name == "EventLoop":
        from stemclient.loop import EventLoop as _L

        return _L
    if name == "JobStatusPoller":
        from stemclient.poller import JobStatusPoller as _P

        return _P
    if name == "HealthProber":
        from stemclient.health import HealthProber as _H

        return _H
    if name == "UploadCoordinator":
        from stemclient.upload import UploadCoordinator as _U

        return _U
    if name == "DownloadTrigger":
        from stemclient.download import DownloadTrigger as _D

        return _D
    if name == "JobOrchestrator":
        from stemclient.orchestrator import JobOrchestrator as _O

        return _O
    if name == "display_state":
        from stemclient.view import display_state as _ds

        return _ds
    raise AttributeError(f"module 'stemclient' has no attribute {name!r}")
