from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
import requests

from stemclient.api import JobApiClient
from stemclient.config import ClientSettings
from stemclient.errors import NotFoundError, ServerError, TransportError
from stemclient.models import JobConfig, JobState


class _MockResponse:
    def __init__(self, status_code: int = 200, payload=None, content: bytes = b"", text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.content = content
        self.text = text

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON")
        return self._payload


@pytest.fixture
def client() -> JobApiClient:
    return JobApiClient("http://api.test/", timeout=6.0, transfer_timeout=60.0)


def test_from_settings_uses_endpoint_and_timeouts():
    c = JobApiClient.from_settings(ClientSettings(endpoint="http://h:1", poll_interval=1.0, transfer_timeout=30.0))
    assert c.base_url == "http://h:1"
    assert c.timeout == 4.0
    assert c.transfer_timeout == 30.0


@patch("stemclient.api.requests.post")
def test_submit_sends_wav_and_config(mock_post, client, wav_file: Path):
    mock_post.return_value = _MockResponse(200, {"id": "abc123"})
    cfg = JobConfig.create("balanced-six-stem", ["piano"])

    assert client.submit(wav_file, cfg) == "abc123"

    args, kwargs = mock_post.call_args
    assert args[0] == "http://api.test/jobs"
    name, _, content_type = kwargs["files"]["file"]
    assert (name, content_type) == ("track.wav", "audio/wav")
    assert json.loads(kwargs["data"]["config"]) == {"model": "balanced-six-stem", "stems": ["piano"]}
    assert kwargs["timeout"] == 60.0


@patch("stemclient.api.requests.post")
def test_submit_error_carries_body(mock_post, client, wav_file: Path):
    mock_post.return_value = _MockResponse(400, text="bad config")
    with pytest.raises(ServerError) as exc:
        client.submit(wav_file)
    assert str(exc.value) == "Upload failed (400): bad config"
    assert exc.value.status_code == 400


@patch("stemclient.api.requests.post")
def test_submit_without_id_is_an_error(mock_post, client, wav_file: Path):
    mock_post.return_value = _MockResponse(200, {"status": "queued"})
    with pytest.raises(ServerError):
        client.submit(wav_file)


@patch("stemclient.api.requests.get")
def test_get_status(mock_get, client):
    mock_get.return_value = _MockResponse(200, {"id": "j1", "status": "running", "progress": 0.42})
    s = client.get_status("j1")
    assert s.status is JobState.RUNNING
    assert s.progress == 0.42
    assert mock_get.call_args[0][0] == "http://api.test/jobs/j1"
    assert mock_get.call_args[1]["timeout"] == 6.0


@patch("stemclient.api.requests.get")
def test_get_status_404_is_not_found(mock_get, client):
    mock_get.return_value = _MockResponse(404)
    with pytest.raises(NotFoundError):
        client.get_status("gone")


@patch("stemclient.api.requests.get")
def test_get_status_5xx_and_bad_json(mock_get, client):
    mock_get.return_value = _MockResponse(503)
    with pytest.raises(ServerError, match=r"Status check failed \(503\)"):
        client.get_status("j1")
    mock_get.return_value = _MockResponse(200, payload=None, text="<html>")
    with pytest.raises(ServerError):
        client.get_status("j1")


@patch("stemclient.api.requests.get")
def test_transport_errors_are_wrapped(mock_get, client):
    mock_get.side_effect = requests.ConnectionError("refused")
    with pytest.raises(TransportError):
        client.get_status("j1")
    with pytest.raises(TransportError):
        client.health()


@patch("stemclient.api.requests.get")
def test_download_returns_bytes(mock_get, client):
    mock_get.return_value = _MockResponse(200, content=b"PK\x03\x04")
    assert client.download("j1") == b"PK\x03\x04"
    assert mock_get.call_args[0][0] == "http://api.test/jobs/j1/download"


@patch("stemclient.api.requests.delete")
def test_cancel_treats_404_as_success(mock_delete, client):
    mock_delete.return_value = _MockResponse(404)
    client.cancel("j1")
    mock_delete.return_value = _MockResponse(500, text="boom")
    with pytest.raises(ServerError, match="Cancel failed"):
        client.cancel("j1")


@patch("stemclient.api.requests.get")
def test_health(mock_get, client):
    mock_get.return_value = _MockResponse(200)
    client.health()
    assert mock_get.call_args[0][0] == "http://api.test/health"
    mock_get.return_value = _MockResponse(502)
    with pytest.raises(ServerError):
        client.health()


@patch("stemclient.api.requests.get")
def test_unfollowed_redirect_is_not_success(mock_get, client):
    mock_get.return_value = _MockResponse(304, {"id": "j1", "status": "running"})
    with pytest.raises(ServerError, match=r"\(304\)"):
        client.get_status("j1")
    with pytest.raises(ServerError):
        client.download("j1")
