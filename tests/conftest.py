"""Shared fixtures: a hand-driven loop and a scripted API double.

``ManualLoop`` never runs anything on its own. I/O queued through ``run_io``
stays pending until a test settles it, and timers fire only when the test
advances the clock, so races between cancel and poll can be scripted exactly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from stemclient.config import ClientSettings
from stemclient.models import JobStatus


class _ManualTimer:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualLoop:
    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[_ManualTimer] = []
        self.pending: list[tuple[Callable[[], Any], Callable[[Any], None], Callable[[BaseException], None]]] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def run_io(self, fn, on_success, on_failure) -> None:
        self.pending.append((fn, on_success, on_failure))

    @property
    def active_timers(self) -> list[_ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def settle(self, index: int = 0) -> None:
        fn, on_success, on_failure = self.pending.pop(index)
        try:
            result = fn()
        except Exception as e:
            on_failure(e)
        else:
            on_success(result)

    def settle_all(self) -> None:
        while self.pending:
            self.settle()

    def advance(self, seconds: float) -> None:
        self.now += seconds
        while True:
            due = [t for t in self.active_timers if t.when <= self.now]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self.timers.remove(timer)
            timer.callback()

    def step(self, interval: float) -> None:
        """Settle outstanding I/O, then let the next poll interval elapse."""

        self.settle_all()
        self.advance(interval)


class FakeApi:
    """Scripted stand-in for ``JobApiClient``; records every call."""

    def __init__(self) -> None:
        self.statuses: list[Any] = []
        self.submit_result: Any = "abc123"
        self.cancel_result: Any = None
        self.download_result: Any = b"PK\x03\x04stems"
        self.health_result: Any = None
        self.calls: list[tuple[str, str, Any]] = []

    def factory(self, settings: ClientSettings) -> "FakeClient":
        return FakeClient(self, settings.endpoint)

    def queue_status(self, job_id: str, status: str, **fields: Any) -> None:
        self.statuses.append(JobStatus.from_dict({"id": job_id, "status": status, **fields}))

    def count(self, method: str) -> int:
        return sum(1 for name, _, _ in self.calls if name == method)

    @staticmethod
    def _answer(value: Any) -> Any:
        if isinstance(value, BaseException):
            raise value
        return value


class FakeClient:
    def __init__(self, api: FakeApi, base_url: str) -> None:
        self.api = api
        self.base_url = base_url

    def submit(self, path: Path, config: Any = None) -> str:
        self.api.calls.append(("submit", self.base_url, (path, config)))
        return self.api._answer(self.api.submit_result)

    def get_status(self, job_id: str) -> JobStatus:
        self.api.calls.append(("get_status", self.base_url, job_id))
        if not self.api.statuses:
            raise AssertionError(f"no scripted status left for {job_id}")
        return self.api._answer(self.api.statuses.pop(0))

    def download(self, job_id: str) -> bytes:
        self.api.calls.append(("download", self.base_url, job_id))
        return self.api._answer(self.api.download_result)

    def cancel(self, job_id: str) -> None:
        self.api.calls.append(("cancel", self.base_url, job_id))
        return self.api._answer(self.api.cancel_result)

    def health(self) -> None:
        self.api.calls.append(("health", self.base_url, None))
        return self.api._answer(self.api.health_result)


@pytest.fixture
def loop() -> ManualLoop:
    return ManualLoop()


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def settings(tmp_path: Path) -> ClientSettings:
    return ClientSettings(
        endpoint="http://api.test",
        poll_interval=1.0,
        health_interval=5.0,
        download_dir=tmp_path / "downloads",
    )


@pytest.fixture
def wav_file(tmp_path: Path) -> Path:
    p = tmp_path / "track.wav"
    p.write_bytes(b"RIFF" + b"\x00" * 1024)
    return p
