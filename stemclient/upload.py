"""One-shot submission of a WAV file and its processing configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional
import logging
import mimetypes

from stemclient.api import ClientFactory, JobApiClient
from stemclient.config import WAV_CONTENT_TYPES, ClientSettings
from stemclient.errors import ServerError, UploadError, ValidationError
from stemclient.loop import Loop
from stemclient.models import JobConfig, JobHandle


_LOGGER = logging.getLogger(__name__)


def guess_content_type(path: Path) -> Optional[str]:
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type


def is_wav(filename: str, content_type: Optional[str] = None) -> bool:
    """True when the name ends in ``.wav`` or the declared MIME type is a WAV type."""

    if filename.lower().endswith(".wav"):
        return True
    return (content_type or "").split(";")[0].strip().lower() in WAV_CONTENT_TYPES


def validate_upload(path: Optional[Path], config: Optional[JobConfig], content_type: Optional[str] = None) -> Path:
    if path is None:
        raise ValidationError("Please select a WAV file")
    path = Path(path)
    if not path.is_file():
        raise ValidationError(f"File not found: {path}")
    if not is_wav(path.name, content_type or guess_content_type(path)):
        raise ValidationError("Please select a WAV file")
    if config is not None:
        config.validate()
    return path


class UploadCoordinator:
    """Submit a file exactly once per call.

    Duplicate submissions are not detected here; callers keep their upload
    control disabled while ``in_flight`` is true.
    """

    def __init__(
        self,
        loop: Loop,
        settings: ClientSettings,
        client_factory: ClientFactory = JobApiClient.from_settings,
    ) -> None:
        self._loop = loop
        self._settings = settings
        self._client_factory = client_factory
        self._in_flight = 0
        self._generation = 0

    @property
    def in_flight(self) -> bool:
        return self._in_flight > 0

    def submit(
        self,
        path: Optional[Path],
        config: Optional[JobConfig],
        on_success: Callable[[JobHandle], None],
        on_failure: Callable[[UploadError], None],
        *,
        content_type: Optional[str] = None,
    ) -> None:
        path = validate_upload(path, config, content_type)
        client = self._client_factory(self._settings)
        generation = self._generation
        self._in_flight += 1
        _LOGGER.info("uploading %s to %s", path.name, client.base_url)

        def _done(job_id: str) -> None:
            self._in_flight -= 1
            if generation != self._generation:
                return
            _LOGGER.info("upload accepted as job %s", job_id)
            on_success(JobHandle(id=job_id))

        def _failed(exc: BaseException) -> None:
            self._in_flight -= 1
            if generation != self._generation:
                return
            message = str(exc) if isinstance(exc, ServerError) else "upload failed"
            _LOGGER.warning("upload of %s failed: %s", path.name, exc)
            on_failure(UploadError(message, exc))

        self._loop.run_io(lambda: client.submit(path, config), _done, _failed)

    def close(self) -> None:
        self._generation += 1
