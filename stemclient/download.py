"""Fetch a finished job's stems archive and save it locally."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional
import logging

from stemclient.api import ClientFactory, JobApiClient
from stemclient.config import ClientSettings
from stemclient.errors import DownloadError, ServerError
from stemclient.loop import Loop
from stemclient.models import JobStatus
from stemclient.utils import ensure_dir
from stemclient.view import can_download


_LOGGER = logging.getLogger(__name__)


def default_filename(job_id: str) -> str:
    return f"job-{job_id}.zip"


class FileSaver:
    """Write downloaded archives into ``directory`` as ``job-<id>.zip``."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def __call__(self, job_id: str, payload: bytes) -> Path:
        ensure_dir(self.directory)
        dest = self.directory / default_filename(job_id)
        dest.write_bytes(payload)
        return dest


Saver = Callable[[str, bytes], Path]


class DownloadTrigger:
    """Download once per request; a second request for the same job while the
    first is running is rejected rather than queued."""

    def __init__(
        self,
        loop: Loop,
        settings: ClientSettings,
        client_factory: ClientFactory = JobApiClient.from_settings,
        saver: Optional[Saver] = None,
    ) -> None:
        self._loop = loop
        self._settings = settings
        self._client_factory = client_factory
        self._saver = saver or self._save_to_download_dir
        self._active: set[str] = set()
        self._generation = 0

    def _save_to_download_dir(self, job_id: str, payload: bytes) -> Path:
        return FileSaver(self._settings.download_dir)(job_id, payload)

    def in_flight(self, job_id: str) -> bool:
        return job_id in self._active

    def enabled(self, snapshot: Optional[JobStatus]) -> bool:
        return snapshot is not None and can_download(snapshot, self.in_flight(snapshot.id))

    def trigger(
        self,
        job_id: str,
        snapshot: Optional[JobStatus],
        on_success: Callable[[Path], None],
        on_failure: Callable[[DownloadError], None],
    ) -> None:
        if job_id in self._active:
            raise DownloadError(f"Download of job {job_id} is already in progress")
        if not can_download(snapshot):
            raise DownloadError(f"Job {job_id} has no completed result to download")
        client = self._client_factory(self._settings)
        generation = self._generation
        self._active.add(job_id)

        def _fetched(payload: bytes) -> None:
            self._active.discard(job_id)
            if generation != self._generation:
                return
            try:
                dest = self._saver(job_id, payload)
            except OSError as e:
                on_failure(DownloadError(f"Could not save download: {e}", e))
                return
            _LOGGER.info("saved job %s to %s", job_id, dest)
            on_success(dest)

        def _failed(exc: BaseException) -> None:
            self._active.discard(job_id)
            if generation != self._generation:
                return
            message = str(exc) if isinstance(exc, ServerError) else "Download failed"
            _LOGGER.warning("download of %s failed: %s", job_id, exc)
            on_failure(DownloadError(message, exc))

        self._loop.run_io(lambda: client.download(job_id), _fetched, _failed)

    def close(self) -> None:
        self._generation += 1
