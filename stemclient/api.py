"""HTTP client for the remote Stemsmith job API."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional
import json
import logging

import requests

from stemclient.config import ClientSettings, Config
from stemclient.errors import NotFoundError, ServerError, TransportError
from stemclient.models import JobConfig, JobStatus


_LOGGER = logging.getLogger(__name__)

_JSON_HEADERS = {"Accept": "application/json"}


def _succeeded(resp: requests.Response) -> bool:
    """Only 2xx counts; unfollowed redirects such as 304 are failures."""

    return 200 <= resp.status_code < 300


class JobApiClient:
    """Thin wrapper over the job routes of one endpoint.

    Parameters
    ----------
    base_url:
        API root; a trailing slash is ignored.
    timeout:
        Timeout in seconds for status, cancel and health calls.
    transfer_timeout:
        Timeout in seconds for uploads and downloads.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = Config.POLL_INTERVAL * Config.REQUEST_TIMEOUT_FACTOR,
        transfer_timeout: float = Config.TRANSFER_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transfer_timeout = transfer_timeout

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "JobApiClient":
        return cls(settings.endpoint, settings.request_timeout, settings.transfer_timeout)

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def submit(self, path: Path, config: Optional[JobConfig] = None) -> str:
        """Upload ``path`` as ``audio/wav`` and return the new job id."""

        data: dict[str, Any] = {}
        if config is not None:
            data["config"] = json.dumps(config.to_dict())
        try:
            with path.open("rb") as fh:
                resp = requests.post(
                    self.url("/jobs"),
                    files={"file": (path.name, fh, "audio/wav")},
                    data=data,
                    timeout=self.transfer_timeout,
                )
        except requests.RequestException as e:
            raise TransportError(f"Upload failed: {e}") from e
        if not _succeeded(resp):
            raise ServerError(f"Upload failed ({resp.status_code}): {resp.text}", resp.status_code, resp.text)
        payload = self._json(resp, "Upload failed")
        job_id = payload.get("id") if isinstance(payload, dict) else None
        if not job_id:
            raise ServerError("Upload failed: response has no job id", resp.status_code, resp.text)
        return str(job_id)

    def get_status(self, job_id: str) -> JobStatus:
        try:
            resp = requests.get(self.url(f"/jobs/{job_id}"), headers=_JSON_HEADERS, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Status check failed: {e}") from e
        if resp.status_code == 404:
            raise NotFoundError("Job not found")
        if not _succeeded(resp):
            raise ServerError(f"Status check failed ({resp.status_code})", resp.status_code, resp.text)
        payload = self._json(resp, "Status check failed")
        if not isinstance(payload, dict):
            raise ServerError("Status check failed: malformed response", resp.status_code, resp.text)
        return JobStatus.from_dict(payload, job_id=job_id)

    def download(self, job_id: str) -> bytes:
        try:
            resp = requests.get(self.url(f"/jobs/{job_id}/download"), timeout=self.transfer_timeout)
        except requests.RequestException as e:
            raise TransportError(f"Download failed: {e}") from e
        if not _succeeded(resp):
            raise ServerError(f"Download failed ({resp.status_code}): {resp.text}", resp.status_code, resp.text)
        return resp.content

    def cancel(self, job_id: str) -> None:
        """DELETE the job; a 404 means it is already gone and counts as success."""

        try:
            resp = requests.delete(self.url(f"/jobs/{job_id}"), timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Cancel failed: {e}") from e
        if resp.status_code == 404:
            _LOGGER.debug("cancel %s: job already gone", job_id)
            return
        if not _succeeded(resp):
            raise ServerError(f"Cancel failed ({resp.status_code}): {resp.text}", resp.status_code, resp.text)

    def health(self) -> None:
        try:
            resp = requests.get(self.url("/health"), timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Health check failed: {e}") from e
        if not _succeeded(resp):
            raise ServerError(f"Health check failed ({resp.status_code})", resp.status_code, resp.text)

    @staticmethod
    def _json(resp: requests.Response, context: str) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise ServerError(f"{context}: invalid JSON", resp.status_code, resp.text) from e


ClientFactory = Callable[[ClientSettings], JobApiClient]
