from __future__ import annotations

from pathlib import Path

import pytest

from stemclient.errors import ServerError, TransportError, UploadError, ValidationError
from stemclient.models import JobConfig
from stemclient.upload import UploadCoordinator, is_wav, validate_upload


@pytest.mark.parametrize(
    "name, content_type, expected",
    [
        ("track.wav", None, True),
        ("TRACK.WAV", None, True),
        ("track", "audio/x-wav", True),
        ("track.bin", "audio/wav; codecs=1", True),
        ("track.mp3", "audio/mpeg", False),
        ("track.flac", None, False),
    ],
)
def test_is_wav(name, content_type, expected):
    assert is_wav(name, content_type) is expected


def test_validate_upload(wav_file: Path, tmp_path: Path):
    assert validate_upload(wav_file, JobConfig.default()) == wav_file
    with pytest.raises(ValidationError, match="Please select a WAV file"):
        validate_upload(None, None)
    with pytest.raises(ValidationError, match="File not found"):
        validate_upload(tmp_path / "missing.wav", None)


def test_upload_success(loop, settings, api, wav_file):
    handles, failures = [], []
    up = UploadCoordinator(loop, settings, api.factory)
    up.submit(wav_file, JobConfig.default(), handles.append, failures.append)
    assert up.in_flight
    loop.settle()

    assert [h.id for h in handles] == ["abc123"]
    assert handles[0].cancel_requested is False
    assert failures == []
    assert not up.in_flight
    assert api.calls == [("submit", "http://api.test", (wav_file, JobConfig.default()))]


def test_upload_failure_messages(loop, settings, api, wav_file):
    failures = []
    up = UploadCoordinator(loop, settings, api.factory)

    api.submit_result = ServerError("Upload failed (413): too large", 413, "too large")
    up.submit(wav_file, None, lambda h: None, failures.append)
    loop.settle()
    api.submit_result = TransportError("Upload failed: timed out")
    up.submit(wav_file, None, lambda h: None, failures.append)
    loop.settle()

    assert [str(f) for f in failures] == ["Upload failed (413): too large", "upload failed"]
    assert all(isinstance(f, UploadError) for f in failures)
    assert isinstance(failures[1].cause, TransportError)


def test_non_wav_is_rejected_without_request(loop, settings, api, tmp_path):
    mp3 = tmp_path / "a.mp3"
    mp3.write_bytes(b"ID3")
    up = UploadCoordinator(loop, settings, api.factory)
    with pytest.raises(ValidationError):
        up.submit(mp3, None, lambda h: None, lambda e: None)
    assert loop.pending == []
    assert not up.in_flight


def test_declared_content_type_accepts_unsuffixed_file(loop, settings, api, tmp_path):
    raw = tmp_path / "recording"
    raw.write_bytes(b"RIFF")
    handles = []
    UploadCoordinator(loop, settings, api.factory).submit(
        raw, None, handles.append, lambda e: None, content_type="audio/wav"
    )
    loop.settle()
    assert len(handles) == 1


def test_close_drops_late_result(loop, settings, api, wav_file):
    handles = []
    up = UploadCoordinator(loop, settings, api.factory)
    up.submit(wav_file, None, handles.append, handles.append)
    up.close()
    loop.settle()
    assert handles == []
    assert not up.in_flight
