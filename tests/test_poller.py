from __future__ import annotations

import pytest

from stemclient.errors import NotFoundError, ServerError, TransportError
from stemclient.models import JobState
from stemclient.poller import JOB_NOT_FOUND, JobStatusPoller, PollerState


def _start(loop, settings, api, job_id="abc123"):
    updates, errors = [], []
    poller = JobStatusPoller(loop, settings, api.factory)
    poller.start(job_id, updates.append, errors.append, 1.0)
    return poller, updates, errors


def test_first_fetch_is_issued_immediately(loop, settings, api):
    poller, _, _ = _start(loop, settings, api)
    assert poller.state is PollerState.POLLING
    assert len(loop.pending) == 1
    assert loop.active_timers == []


def test_next_fetch_scheduled_only_after_previous_settles(loop, settings, api):
    api.queue_status("abc123", "running", progress=0.1)
    api.queue_status("abc123", "running", progress=0.2)
    _, updates, _ = _start(loop, settings, api)

    # Nothing is scheduled while the first request is outstanding
    loop.advance(10.0)
    assert len(loop.pending) == 1
    assert api.count("get_status") == 0

    loop.settle()
    assert [u.progress for u in updates] == [0.1]
    assert len(loop.active_timers) == 1
    loop.advance(0.5)
    assert loop.pending == []
    loop.advance(0.5)
    assert len(loop.pending) == 1


def test_terminal_status_stops_polling(loop, settings, api):
    api.queue_status("abc123", "running", progress=0.42)
    api.queue_status("abc123", "completed", output_dir="/out/abc123")
    poller, updates, _ = _start(loop, settings, api)

    loop.step(1.0)
    loop.step(1.0)
    loop.advance(30.0)

    assert [u.status for u in updates] == [JobState.RUNNING, JobState.COMPLETED]
    assert poller.state is PollerState.STOPPED
    assert api.count("get_status") == 2
    assert loop.pending == [] and loop.active_timers == []


@pytest.mark.parametrize("terminal", ["completed", "failed", "cancelled"])
def test_every_terminal_state_ends_the_loop(loop, settings, api, terminal):
    api.queue_status("abc123", terminal)
    poller, _, _ = _start(loop, settings, api)
    loop.step(1.0)
    loop.advance(60.0)
    assert poller.state is PollerState.STOPPED
    assert api.count("get_status") == 1


def test_not_found_reports_once_and_stops(loop, settings, api):
    api.statuses.append(NotFoundError("Job not found"))
    poller, updates, errors = _start(loop, settings, api)

    loop.step(1.0)
    loop.advance(60.0)

    assert errors == [JOB_NOT_FOUND]
    assert updates == []
    assert api.count("get_status") == 1
    assert poller.state is PollerState.STOPPED


def test_recoverable_errors_keep_polling(loop, settings, api):
    api.statuses.append(TransportError("Status check failed: connection refused"))
    api.statuses.append(ServerError("Status check failed (502)", 502))
    api.queue_status("abc123", "completed")
    poller, updates, errors = _start(loop, settings, api)

    for _ in range(3):
        loop.step(1.0)

    assert errors == ["Status check failed: connection refused", "Status check failed (502)"]
    assert [u.status for u in updates] == [JobState.COMPLETED]
    assert poller.state is PollerState.STOPPED


def test_stop_discards_in_flight_result(loop, settings, api):
    api.queue_status("abc123", "running", progress=0.5)
    poller, updates, errors = _start(loop, settings, api)

    poller.stop()
    loop.settle_all()
    loop.advance(10.0)

    assert updates == [] and errors == []
    assert loop.pending == []


def test_stop_cancels_pending_timer(loop, settings, api):
    api.queue_status("abc123", "queued")
    poller, _, _ = _start(loop, settings, api)
    loop.settle_all()
    assert len(loop.active_timers) == 1

    poller.stop()
    assert loop.active_timers == []
    loop.advance(10.0)
    assert api.count("get_status") == 1


def test_stop_is_idempotent_after_self_termination(loop, settings, api):
    api.queue_status("abc123", "failed", error="decoder error")
    poller, updates, errors = _start(loop, settings, api)
    loop.step(1.0)

    poller.stop()
    poller.stop()

    assert poller.state is PollerState.STOPPED
    assert len(updates) == 1 and errors == []
    assert api.count("get_status") == 1


def test_start_twice_is_rejected(loop, settings, api):
    poller, _, _ = _start(loop, settings, api)
    with pytest.raises(RuntimeError):
        poller.start("abc123", lambda s: None, lambda m: None)


def test_endpoint_is_read_when_each_request_is_issued(loop, settings, api):
    api.queue_status("abc123", "running")
    api.queue_status("abc123", "running")
    _start(loop, settings, api)

    settings.endpoint = "http://other.test"
    loop.step(1.0)  # first request was issued before the change
    loop.settle_all()

    urls = [base for name, base, _ in api.calls if name == "get_status"]
    assert urls == ["http://api.test", "http://other.test"]
