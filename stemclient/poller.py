"""Per-job status polling.

The next fetch is scheduled only after the previous one settles, so at most one
status request per job is outstanding and slow responses back the loop off
naturally. Every deferred continuation carries the generation it was issued
under; ``stop()`` bumps the generation and anything older is dropped.
"""

from __future__ import annotations

from enum import Enum
from functools import partial
from typing import Callable, Optional
import logging

from stemclient.api import ClientFactory, JobApiClient
from stemclient.config import ClientSettings
from stemclient.errors import NotFoundError
from stemclient.loop import Loop, TimerHandle
from stemclient.models import JobStatus


_LOGGER = logging.getLogger(__name__)

JOB_NOT_FOUND = "job not found"


class PollerState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    STOPPED = "stopped"


class JobStatusPoller:
    def __init__(
        self,
        loop: Loop,
        settings: ClientSettings,
        client_factory: ClientFactory = JobApiClient.from_settings,
    ) -> None:
        self._loop = loop
        self._settings = settings
        self._client_factory = client_factory
        self._state = PollerState.IDLE
        self._generation = 0
        self._timer: Optional[TimerHandle] = None
        self._job_id: Optional[str] = None
        self._interval = settings.poll_interval
        self._on_update: Callable[[JobStatus], None] = lambda status: None
        self._on_error: Callable[[str], None] = lambda message: None
        self.fetch_count = 0

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def job_id(self) -> Optional[str]:
        return self._job_id

    def start(
        self,
        job_id: str,
        on_update: Callable[[JobStatus], None],
        on_error: Callable[[str], None],
        interval: Optional[float] = None,
    ) -> None:
        if self._state is not PollerState.IDLE:
            raise RuntimeError("poller already started; create a new poller for each tracking session")
        self._job_id = job_id
        self._on_update = on_update
        self._on_error = on_error
        if interval is not None:
            self._interval = interval
        self._state = PollerState.POLLING
        _LOGGER.debug("polling %s every %.2fs", job_id, self._interval)
        self._fetch(self._generation)

    def stop(self) -> None:
        if self._state is PollerState.STOPPED:
            return
        self._halt()

    def _halt(self) -> None:
        self._generation += 1
        self._state = PollerState.STOPPED
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _current(self, generation: int) -> bool:
        return generation == self._generation and self._state is PollerState.POLLING

    def _fetch(self, generation: int) -> None:
        self._timer = None
        if not self._current(generation):
            return
        client = self._client_factory(self._settings)
        job_id = self._job_id
        self.fetch_count += 1
        self._loop.run_io(
            lambda: client.get_status(job_id),
            partial(self._handle_status, generation),
            partial(self._handle_failure, generation),
        )

    def _schedule(self, generation: int) -> None:
        self._timer = self._loop.call_later(self._interval, partial(self._fetch, generation))

    def _handle_status(self, generation: int, status: JobStatus) -> None:
        if not self._current(generation):
            _LOGGER.debug("discarding stale status for %s", self._job_id)
            return
        if status.is_terminal:
            _LOGGER.info("job %s reached %s", self._job_id, status.status.value)
            self._halt()
            self._on_update(status)
            return
        self._on_update(status)
        if self._current(generation):
            self._schedule(generation)

    def _handle_failure(self, generation: int, exc: BaseException) -> None:
        if not self._current(generation):
            return
        if isinstance(exc, NotFoundError):
            _LOGGER.warning("job %s not found; polling stopped", self._job_id)
            self._halt()
            self._on_error(JOB_NOT_FOUND)
            return
        _LOGGER.warning("status check for %s failed: %s", self._job_id, exc)
        self._on_error(str(exc) or "Status check failed")
        if self._current(generation):
            self._schedule(generation)
