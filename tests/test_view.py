from __future__ import annotations

import pytest

from stemclient.models import JobState, JobStatus
from stemclient.view import EffectiveState, can_download, display_state, format_progress, visible_error


def _snap(status: str, **fields) -> JobStatus:
    return JobStatus.from_dict({"id": "j1", "status": status, **fields})


@pytest.mark.parametrize("status", ["queued", "running", "unknown"])
def test_overlay_applies_to_live_jobs(status):
    assert display_state(_snap(status), True) is EffectiveState.CANCELLING
    assert display_state(_snap(status), False).value == status


@pytest.mark.parametrize("status", ["completed", "failed", "cancelled"])
def test_terminal_snapshot_wins_over_overlay(status):
    assert display_state(_snap(status), True).value == status


def test_missing_snapshot_is_unknown():
    assert display_state(None, False) is EffectiveState.UNKNOWN


def test_download_only_when_completed():
    assert can_download(_snap("completed"))
    assert not can_download(_snap("completed"), downloading=True)
    for status in ("queued", "running", "failed", "cancelled", "unknown"):
        assert not can_download(_snap(status))
    assert not can_download(None)


def test_format_progress():
    assert format_progress(_snap("running", progress=0.42)) == "42%"
    assert format_progress(_snap("queued")) == "--"
    assert format_progress(None) == "--"


def test_visible_error_hidden_for_cancelled():
    failed = _snap("failed", error="decoder error")
    assert visible_error(failed) == "decoder error"
    cancelled = JobStatus(id="j1", status=JobState.CANCELLED)
    assert visible_error(cancelled) is None
