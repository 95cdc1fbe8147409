from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from stemclient.config import DEFAULT_MODEL, PROFILE_STEMS
from stemclient.errors import ValidationError


class JobState(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"  # local only: no snapshot retrieved yet

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES

    @classmethod
    def parse(cls, value: Any) -> "JobState":
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.UNKNOWN


TERMINAL_STATES = frozenset({JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED})

NO_PROGRESS = -1.0


@dataclass(frozen=True)
class JobStatus:
    """Latest known snapshot of a remote job."""

    id: str
    status: JobState = JobState.UNKNOWN
    progress: float = NO_PROGRESS
    output_location: Optional[str] = None
    error_message: Optional[str] = None

    def __post_init__(self) -> None:
        if self.status is JobState.CANCELLED and self.error_message is not None:
            object.__setattr__(self, "error_message", None)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def has_progress(self) -> bool:
        return self.progress >= 0.0

    @classmethod
    def unknown(cls, job_id: str) -> "JobStatus":
        return cls(id=job_id)

    @classmethod
    def from_dict(cls, data: dict[str, Any], job_id: Optional[str] = None) -> "JobStatus":
        """Parse the server's status JSON (``output_dir`` and ``error`` keys)."""

        raw_progress = data.get("progress")
        try:
            progress = float(raw_progress) if raw_progress is not None else NO_PROGRESS
        except (TypeError, ValueError):
            progress = NO_PROGRESS
        if progress < 0.0:
            progress = NO_PROGRESS
        else:
            progress = min(1.0, progress)
        error = data.get("error")
        return cls(
            id=str(data.get("id") or job_id or ""),
            status=JobState.parse(data.get("status", JobState.UNKNOWN.value)),
            progress=progress,
            output_location=data.get("output_dir"),
            error_message=str(error) if error else None,
        )


@dataclass
class JobHandle:
    id: str
    cancel_requested: bool = False


@dataclass(frozen=True)
class JobConfig:
    """Processing parameters attached to an upload.

    Every stem must belong to the selected profile; switching profiles prunes
    stems the new profile does not offer.
    """

    model: str = DEFAULT_MODEL
    stems: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def default(cls) -> "JobConfig":
        return cls()

    @classmethod
    def create(cls, model: str, stems: list[str] | tuple[str, ...] = ()) -> "JobConfig":
        cfg = cls(model=model, stems=tuple(dict.fromkeys(stems)))
        cfg.validate()
        return cfg

    @property
    def available_stems(self) -> list[str]:
        return list(PROFILE_STEMS.get(self.model, []))

    def validate(self) -> None:
        if self.model not in PROFILE_STEMS:
            raise ValidationError(f"Unknown model profile: {self.model}")
        allowed = PROFILE_STEMS[self.model]
        bad = [s for s in self.stems if s not in allowed]
        if bad:
            raise ValidationError(f"Stems {', '.join(bad)} are not offered by {self.model}")

    def with_model(self, model: str) -> "JobConfig":
        if model not in PROFILE_STEMS:
            raise ValidationError(f"Unknown model profile: {model}")
        allowed = PROFILE_STEMS[model]
        return replace(self, model=model, stems=tuple(s for s in self.stems if s in allowed))

    def toggle_stem(self, stem: str) -> "JobConfig":
        if stem in self.stems:
            return replace(self, stems=tuple(s for s in self.stems if s != stem))
        if stem not in self.available_stems:
            raise ValidationError(f"Stem {stem!r} is not offered by {self.model}")
        return replace(self, stems=self.stems + (stem,))

    def to_dict(self) -> dict[str, Any]:
        return {"model": self.model, "stems": list(self.stems)}


class HealthState(str, Enum):
    UNKNOWN = "unknown"
    OK = "ok"
    FAIL = "fail"
