"""Job lifecycle orchestration.

``JobOrchestrator`` owns the tracked jobs of one client session. It starts a
fresh :class:`JobStatusPoller` for each job, layers the local cancel-requested
flag over the last polled snapshot, gates downloads on completion and decides
what removing a job from view means. Everything runs on a single cooperative
loop; observers are notified through plain listener callbacks.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional
import logging

from stemclient.api import ClientFactory, JobApiClient
from stemclient.config import ClientSettings
from stemclient.download import DownloadTrigger, Saver
from stemclient.endpoint import EndpointStore, normalize_endpoint, save_endpoint
from stemclient.errors import CancelError, DownloadError, ServerError, UploadError
from stemclient.health import HealthProber
from stemclient.loop import Loop
from stemclient.models import HealthState, JobConfig, JobHandle, JobStatus
from stemclient.poller import JobStatusPoller, PollerState
from stemclient.upload import UploadCoordinator
from stemclient.view import EffectiveState, can_download, display_state, visible_error


_LOGGER = logging.getLogger(__name__)


class RemovalChoice(str, Enum):
    REMOVE = "remove"
    CANCEL = "cancel"
    KEEP = "keep"


@dataclass
class TrackedJob:
    handle: JobHandle
    snapshot: JobStatus
    poll_error: Optional[str] = None
    cancel_error: Optional[str] = None
    cancel_in_flight: bool = False
    downloading: bool = False
    download_error: Optional[str] = None
    downloaded_to: Optional[Path] = None

    @property
    def id(self) -> str:
        return self.handle.id

    @property
    def is_terminal(self) -> bool:
        return self.snapshot.is_terminal

    @property
    def display(self) -> EffectiveState:
        return display_state(self.snapshot, self.handle.cancel_requested)

    @property
    def can_download(self) -> bool:
        return can_download(self.snapshot, self.downloading)

    @property
    def can_cancel(self) -> bool:
        return not self.is_terminal and not self.handle.cancel_requested

    @property
    def error(self) -> Optional[str]:
        """The message to show for this job, most recent operation first."""

        return self.cancel_error or self.download_error or self.poll_error or visible_error(self.snapshot)


Listener = Callable[[str, Any], None]
ConfirmRemoval = Callable[[TrackedJob], RemovalChoice]


class JobOrchestrator:
    """Mediates submission, polling, cancellation, removal and download.

    Listener events: ``added``/``updated`` (payload :class:`TrackedJob`),
    ``removed`` (job id), ``health`` (:class:`HealthState`), ``upload`` (bool,
    whether a submission is in flight).
    """

    def __init__(
        self,
        loop: Loop,
        settings: ClientSettings,
        client_factory: ClientFactory = JobApiClient.from_settings,
        endpoint_store: Optional[EndpointStore] = None,
        saver: Optional[Saver] = None,
    ) -> None:
        self._loop = loop
        self.settings = settings
        self._client_factory = client_factory
        self._endpoint_store = endpoint_store
        self._jobs: dict[str, TrackedJob] = {}
        self._order: list[str] = []
        self._pollers: dict[str, JobStatusPoller] = {}
        self._listeners: list[Listener] = []
        self._closed = False
        self.uploads = UploadCoordinator(loop, settings, client_factory)
        self.downloads = DownloadTrigger(loop, settings, client_factory, saver)
        self.health = HealthProber(loop, settings, client_factory, on_change=lambda s: self._emit("health", s))

    # Observers --------------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, event: str, payload: Any) -> None:
        if self._closed:
            return
        for listener in list(self._listeners):
            listener(event, payload)

    # Queries ----------------------------------------------------------------
    def jobs(self) -> list[TrackedJob]:
        """Tracked jobs, newest first."""

        return [self._jobs[jid] for jid in self._order]

    def job(self, job_id: str) -> Optional[TrackedJob]:
        return self._jobs.get(job_id)

    def poller(self, job_id: str) -> Optional[JobStatusPoller]:
        return self._pollers.get(job_id)

    @property
    def health_state(self) -> HealthState:
        return self.health.state

    @property
    def uploading(self) -> bool:
        return self.uploads.in_flight

    def _require(self, job_id: str) -> TrackedJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise KeyError(f"Job {job_id} is not tracked")
        return job

    # Session ----------------------------------------------------------------
    def start(self) -> None:
        """Begin health probing for the current endpoint."""

        self.health.start(self.settings.endpoint, self.settings.health_interval)

    def set_endpoint(self, value: str) -> str:
        """Switch endpoints; requests already issued keep the old one."""

        endpoint = normalize_endpoint(value)
        if not endpoint:
            raise ValueError("Endpoint must not be empty")
        self.settings.endpoint = endpoint
        save_endpoint(self._endpoint_store, endpoint)
        _LOGGER.info("endpoint set to %s", endpoint)
        if not self._closed:
            self.health.start(endpoint, self.settings.health_interval)
        return endpoint

    def close(self) -> None:
        """Tear the session down; results that settle afterwards are dropped."""

        if self._closed:
            return
        for poller in self._pollers.values():
            poller.stop()
        self._pollers.clear()
        self.health.stop()
        self.uploads.close()
        self.downloads.close()
        self._listeners.clear()
        self._closed = True

    # Submission and tracking -------------------------------------------------
    def submit(
        self,
        path: Optional[Path],
        config: Optional[JobConfig] = None,
        on_success: Optional[Callable[[TrackedJob], None]] = None,
        on_failure: Optional[Callable[[UploadError], None]] = None,
        *,
        content_type: Optional[str] = None,
    ) -> None:
        """Upload ``path``; on success the new job is tracked exactly once.

        Raises ``ValidationError`` before any network call for a non-WAV file.
        """

        def _accepted(handle: JobHandle) -> None:
            self._emit("upload", self.uploads.in_flight)
            job = self.track(handle.id)
            if on_success is not None:
                on_success(job)

        def _rejected(err: UploadError) -> None:
            self._emit("upload", self.uploads.in_flight)
            if on_failure is not None:
                on_failure(err)

        self.uploads.submit(path, config, _accepted, _rejected, content_type=content_type)
        self._emit("upload", True)

    def track(self, job_id: str) -> TrackedJob:
        if job_id in self._jobs:
            return self._jobs[job_id]
        job = TrackedJob(handle=JobHandle(id=job_id), snapshot=JobStatus.unknown(job_id))
        self._jobs[job_id] = job
        self._order.insert(0, job_id)
        _LOGGER.info("tracking job %s", job_id)
        self._emit("added", job)
        poller = JobStatusPoller(self._loop, self.settings, self._client_factory)
        self._pollers[job_id] = poller
        poller.start(
            job_id,
            lambda status: self._on_status(job_id, status),
            lambda message: self._on_poll_error(job_id, message),
            self.settings.poll_interval,
        )
        return job

    def _on_status(self, job_id: str, status: JobStatus) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            return
        job.snapshot = status
        job.poll_error = None
        if status.is_terminal:
            # The overlay and any stale cancel failure never outlive a terminal snapshot
            job.handle.cancel_requested = False
            job.cancel_error = None
        self._emit("updated", job)

    def _on_poll_error(self, job_id: str, message: str) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            return
        job.poll_error = message
        self._emit("updated", job)

    # Cancellation -----------------------------------------------------------
    def request_cancel(
        self,
        job_id: str,
        on_success: Optional[Callable[[], None]] = None,
        on_failure: Optional[Callable[[CancelError], None]] = None,
    ) -> bool:
        """Ask the server to stop ``job_id``; returns False if nothing was sent.

        Until a terminal snapshot arrives the job displays as ``cancelling``. A
        failed request clears that overlay and records the error on the job.
        """

        job = self._require(job_id)
        if job.is_terminal or job.cancel_in_flight:
            _LOGGER.debug("ignoring cancel for %s (terminal or already cancelling)", job_id)
            return False
        job.handle.cancel_requested = True
        job.cancel_in_flight = True
        job.cancel_error = None
        _LOGGER.info("cancel requested for %s", job_id)
        self._emit("updated", job)

        client = self._client_factory(self.settings)

        def _acknowledged(_result: Any) -> None:
            if self._closed:
                return
            current = self._jobs.get(job_id)
            if current is not None:
                current.cancel_in_flight = False
                poller = self._pollers.get(job_id)
                if not current.is_terminal and (poller is None or poller.state is not PollerState.POLLING):
                    # No later poll can confirm the cancellation
                    current.handle.cancel_requested = False
                self._emit("updated", current)
            if on_success is not None:
                on_success()

        def _failed(exc: BaseException) -> None:
            if self._closed:
                return
            message = str(exc) if isinstance(exc, ServerError) else "Cancel failed"
            _LOGGER.warning("cancel of %s failed: %s", job_id, exc)
            current = self._jobs.get(job_id)
            if current is not None:
                current.cancel_in_flight = False
                current.handle.cancel_requested = False
                current.cancel_error = message
                self._emit("updated", current)
            if on_failure is not None:
                on_failure(CancelError(message, exc))

        self._loop.run_io(lambda: client.cancel(job_id), _acknowledged, _failed)
        return True

    # Removal ----------------------------------------------------------------
    def remove(self, job_id: str, confirm: Optional[ConfirmRemoval] = None) -> bool:
        """Stop tracking ``job_id``.

        Removing a job from view never stops it on the server, so a job that is
        not terminal is only removed when ``confirm`` says so; ``confirm`` may
        instead choose to cancel it. Returns True if the job was removed.
        """

        job = self._require(job_id)
        if not job.is_terminal:
            choice = confirm(job) if confirm is not None else RemovalChoice.KEEP
            if choice is RemovalChoice.CANCEL:
                self.request_cancel(job_id)
                return False
            if choice is not RemovalChoice.REMOVE:
                return False
        poller = self._pollers.pop(job_id, None)
        if poller is not None:
            poller.stop()
        del self._jobs[job_id]
        self._order.remove(job_id)
        _LOGGER.info("removed job %s from view", job_id)
        self._emit("removed", job_id)
        return True

    # Download ---------------------------------------------------------------
    def trigger_download(
        self,
        job_id: str,
        on_success: Optional[Callable[[Path], None]] = None,
        on_failure: Optional[Callable[[DownloadError], None]] = None,
    ) -> None:
        """Download the result of a completed job; raises ``DownloadError`` when
        the job is not completed or a download is already running."""

        job = self._require(job_id)

        def _saved(dest: Path) -> None:
            current = self._jobs.get(job_id)
            if current is not None:
                current.downloading = False
                current.downloaded_to = dest
                self._emit("updated", current)
            if on_success is not None:
                on_success(dest)

        def _failed(err: DownloadError) -> None:
            current = self._jobs.get(job_id)
            if current is not None:
                current.downloading = False
                current.download_error = str(err)
                self._emit("updated", current)
            if on_failure is not None:
                on_failure(err)

        self.downloads.trigger(job_id, job.snapshot, _saved, _failed)
        job.downloading = True
        job.download_error = None
        self._emit("updated", job)
