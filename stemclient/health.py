"""Best-effort reachability signal for the API endpoint."""

from __future__ import annotations

from dataclasses import replace
from functools import partial
from typing import Callable, Optional
import logging

from stemclient.api import ClientFactory, JobApiClient
from stemclient.config import ClientSettings
from stemclient.loop import Loop, TimerHandle
from stemclient.models import HealthState


_LOGGER = logging.getLogger(__name__)


class HealthProber:
    """Probe ``/health`` forever, one request at a time, until stopped.

    Failures only ever change ``state`` to ``fail``; they are never raised.
    """

    def __init__(
        self,
        loop: Loop,
        settings: ClientSettings,
        client_factory: ClientFactory = JobApiClient.from_settings,
        on_change: Optional[Callable[[HealthState], None]] = None,
    ) -> None:
        self._loop = loop
        self._settings = settings
        self._client_factory = client_factory
        self._on_change = on_change
        self._generation = 0
        self._timer: Optional[TimerHandle] = None
        self._running = False
        self._base_url: Optional[str] = None
        self._interval = settings.health_interval
        self.state = HealthState.UNKNOWN

    @property
    def running(self) -> bool:
        return self._running

    @property
    def base_url(self) -> Optional[str]:
        return self._base_url

    def start(self, base_url: Optional[str] = None, interval: Optional[float] = None) -> None:
        self.stop()
        self._base_url = (base_url or self._settings.endpoint).rstrip("/")
        if interval is not None:
            self._interval = interval
        self._running = True
        self._set_state(HealthState.UNKNOWN)
        self._probe(self._generation)

    def stop(self) -> None:
        self._generation += 1
        self._running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _probe(self, generation: int) -> None:
        self._timer = None
        if generation != self._generation:
            return
        client = self._client_factory(replace(self._settings, endpoint=self._base_url))
        self._loop.run_io(
            client.health,
            lambda _result: self._settle(generation, HealthState.OK),
            lambda exc: self._settle(generation, HealthState.FAIL, exc),
        )

    def _settle(self, generation: int, state: HealthState, exc: Optional[BaseException] = None) -> None:
        if generation != self._generation:
            return
        if exc is not None:
            _LOGGER.debug("health probe of %s failed: %s", self._base_url, exc)
        self._set_state(state)
        if generation == self._generation:
            self._timer = self._loop.call_later(self._interval, partial(self._probe, generation))

    def _set_state(self, state: HealthState) -> None:
        if state is self.state:
            return
        self.state = state
        if self._on_change is not None:
            self._on_change(state)
