from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, Signal

from app.core.paths import downloads_dir
from app.core.settings import Settings, endpoint_store, load_settings, save_settings
from app.services.qt_loop import QtLoop
from stemclient.config import ClientSettings
from stemclient.endpoint import load_endpoint
from stemclient.errors import DownloadError, ValidationError
from stemclient.models import HealthState, JobConfig
from stemclient.orchestrator import JobOrchestrator, RemovalChoice, TrackedJob


_LOGGER = logging.getLogger(__name__)


class JobBus(QObject):
    job_added = Signal(str)
    job_updated = Signal(str)
    job_removed = Signal(str)
    health_changed = Signal(str)
    upload_changed = Signal(bool)
    message = Signal(str)


class JobTracker(QObject):
    """GUI-facing wrapper around the job orchestrator.

    Relays orchestrator events as Qt signals and turns operation failures into
    ``message`` notifications instead of exceptions.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        super().__init__()
        self._settings = settings or load_settings()
        self.bus = JobBus()
        self.loop = QtLoop(self)
        store = endpoint_store()
        self.client_settings = ClientSettings(
            endpoint=load_endpoint(store),
            poll_interval=self._settings.poll_interval,
            health_interval=self._settings.health_interval,
            download_dir=downloads_dir(),
        )
        self.orchestrator = JobOrchestrator(self.loop, self.client_settings, endpoint_store=store)
        self.orchestrator.subscribe(self._relay)
        self.orchestrator.start()

    def _relay(self, event: str, payload: Any) -> None:
        if event == "added":
            self.bus.job_added.emit(payload.id)
        elif event == "updated":
            self.bus.job_updated.emit(payload.id)
        elif event == "removed":
            self.bus.job_removed.emit(payload)
        elif event == "health":
            self.bus.health_changed.emit(payload.value)
        elif event == "upload":
            self.bus.upload_changed.emit(bool(payload))

    # Queries
    def job(self, job_id: str) -> TrackedJob | None:
        return self.orchestrator.job(job_id)

    def jobs(self) -> list[TrackedJob]:
        return self.orchestrator.jobs()

    @property
    def uploading(self) -> bool:
        return self.orchestrator.uploading

    @property
    def endpoint(self) -> str:
        return self.client_settings.endpoint

    @property
    def health(self) -> HealthState:
        return self.orchestrator.health_state

    # Actions
    def submit(self, path: Path, config: JobConfig) -> bool:
        try:
            self.orchestrator.submit(path, config, on_failure=lambda err: self.bus.message.emit(str(err)))
        except ValidationError as e:
            self.bus.message.emit(str(e))
            return False
        return True

    def cancel(self, job_id: str) -> None:
        self.orchestrator.request_cancel(job_id, on_failure=lambda err: self.bus.message.emit(str(err)))

    def download(self, job_id: str) -> None:
        try:
            self.orchestrator.trigger_download(
                job_id,
                on_success=lambda dest: self.bus.message.emit(f"Saved {dest}"),
                on_failure=lambda err: self.bus.message.emit(str(err)),
            )
        except DownloadError as e:
            self.bus.message.emit(str(e))

    def remove(self, job_id: str, confirm: Callable[[TrackedJob], RemovalChoice]) -> bool:
        return self.orchestrator.remove(job_id, confirm)

    def set_endpoint(self, value: str) -> str:
        try:
            return self.orchestrator.set_endpoint(value)
        except ValueError as e:
            self.bus.message.emit(str(e))
            return self.client_settings.endpoint

    def set_download_dir(self, value: str) -> None:
        self._settings = load_settings()
        self._settings.download_dir = value or None
        save_settings(self._settings)
        self.client_settings.download_dir = downloads_dir()

    def shutdown(self) -> None:
        _LOGGER.info("shutting down job tracker")
        self.orchestrator.close()
        self.loop.close()
