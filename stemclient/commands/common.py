"""Helpers shared by the CLI commands: endpoint resolution and job following."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

import click
from tqdm import tqdm

from stemclient.config import ClientSettings, Config
from stemclient.endpoint import EndpointStore, json_file_store, load_endpoint, normalize_endpoint
from stemclient.loop import EventLoop
from stemclient.orchestrator import JobOrchestrator, TrackedJob
from stemclient.poller import PollerState
from stemclient.view import progress_percent


ENDPOINT_ENVVAR = "STEMSMITH_API_BASE"


def endpoint_option(fn: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "endpoint",
        "--endpoint",
        type=str,
        envvar=ENDPOINT_ENVVAR,
        default=None,
        help=f"API base URL (default: last saved endpoint or {Config.DEFAULT_ENDPOINT})",
    )(fn)


def endpoint_store() -> EndpointStore:
    return json_file_store(Config.DEFAULT_STATE_DIR / "endpoint.json")


def resolve_settings(
    endpoint: Optional[str],
    *,
    interval: Optional[float] = None,
    output: Optional[Path] = None,
) -> ClientSettings:
    settings = ClientSettings(endpoint=normalize_endpoint(endpoint) if endpoint else load_endpoint(endpoint_store()))
    if interval is not None:
        if interval <= 0:
            raise click.ClickException("--interval must be positive")
        settings.poll_interval = interval
    if output is not None:
        settings.download_dir = output
    return settings


def follow_job(loop: EventLoop, orchestrator: JobOrchestrator, job_id: str) -> TrackedJob:
    """Drive ``loop`` until ``job_id`` is terminal or its poller gives up."""

    job = orchestrator.track(job_id)
    seen_errors: set[str] = set()

    with tqdm(total=100, unit="%", desc=f"job {job_id}", leave=True) as bar:

        def _listener(event: str, payload: Any) -> None:
            if event != "updated" or payload.id != job_id:
                return
            pct = progress_percent(payload.snapshot)
            if pct is not None:
                bar.n = pct
            bar.set_postfix_str(payload.display.value)
            if payload.poll_error and payload.poll_error not in seen_errors:
                seen_errors.add(payload.poll_error)
                tqdm.write(f"warning: {payload.poll_error}")

        unsubscribe = orchestrator.subscribe(_listener)
        try:

            def _done() -> bool:
                poller = orchestrator.poller(job_id)
                return job.is_terminal or poller is None or poller.state is PollerState.STOPPED

            loop.run_until(_done)
        finally:
            unsubscribe()
    return job


def describe(job: TrackedJob) -> str:
    line = f"Job {job.id}: {job.display.value}"
    if job.snapshot.output_location:
        line += f" (output: {job.snapshot.output_location})"
    if job.error:
        line += f" - {job.error}"
    return line
