from __future__ import annotations

import pytest

from stemclient.errors import ValidationError
from stemclient.models import NO_PROGRESS, JobConfig, JobState, JobStatus


def test_terminal_states():
    assert {s for s in JobState if s.is_terminal} == {JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED}


def test_unrecognized_status_maps_to_unknown():
    assert JobState.parse("paused") is JobState.UNKNOWN
    assert JobState.parse("RUNNING") is JobState.RUNNING


def test_from_dict_maps_server_fields():
    s = JobStatus.from_dict({"id": "abc123", "status": "completed", "progress": 1, "output_dir": "/data/abc123"})
    assert s.id == "abc123"
    assert s.status is JobState.COMPLETED
    assert s.progress == 1.0
    assert s.output_location == "/data/abc123"
    assert s.error_message is None


def test_from_dict_uses_requested_id_when_missing():
    s = JobStatus.from_dict({"status": "queued"}, job_id="j9")
    assert s.id == "j9"
    assert not s.has_progress


@pytest.mark.parametrize("raw, expected", [(None, NO_PROGRESS), ("x", NO_PROGRESS), (-0.5, NO_PROGRESS), (1.7, 1.0), (0.42, 0.42)])
def test_progress_is_clamped(raw, expected):
    assert JobStatus.from_dict({"id": "j", "status": "running", "progress": raw}).progress == expected


def test_cancelled_snapshot_has_no_error():
    s = JobStatus.from_dict({"id": "j", "status": "cancelled", "error": "killed"})
    assert s.error_message is None
    f = JobStatus.from_dict({"id": "j", "status": "failed", "error": "decoder error"})
    assert f.error_message == "decoder error"


def test_default_config():
    cfg = JobConfig.default()
    assert cfg.model == "balanced-four-stem"
    assert cfg.stems == ()
    assert cfg.to_dict() == {"model": "balanced-four-stem", "stems": []}


def test_create_rejects_foreign_stems():
    with pytest.raises(ValidationError):
        JobConfig.create("balanced-four-stem", ["piano"])
    with pytest.raises(ValidationError):
        JobConfig.create("no-such-model")


def test_switching_profile_prunes_stems():
    six = JobConfig.create("balanced-six-stem", ["piano", "drums"])
    four = six.with_model("balanced-four-stem")
    assert four.stems == ("drums",)
    four.validate()


def test_toggle_stem():
    cfg = JobConfig.default().toggle_stem("vocals").toggle_stem("bass")
    assert cfg.stems == ("vocals", "bass")
    assert cfg.toggle_stem("vocals").stems == ("bass",)
    with pytest.raises(ValidationError):
        cfg.toggle_stem("guitar")
