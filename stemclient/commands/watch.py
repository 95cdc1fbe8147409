"""CLI commands to inspect a job once (``status``) or until it finishes (``watch``)."""

from __future__ import annotations

from typing import Optional
import json

import click

from stemclient.api import JobApiClient
from stemclient.commands.common import describe, endpoint_option, follow_job, resolve_settings
from stemclient.config import Config
from stemclient.errors import StemClientError
from stemclient.loop import EventLoop
from stemclient.models import JobState
from stemclient.orchestrator import JobOrchestrator
from stemclient.view import format_progress, visible_error


@click.command(name="status")
@click.argument("job_id")
@endpoint_option
@click.option("as_json", "--json", is_flag=True, help="Print the raw snapshot as JSON")
def status(job_id: str, endpoint: Optional[str], as_json: bool) -> None:
    """Fetch the current status of JOB_ID once."""

    client = JobApiClient.from_settings(resolve_settings(endpoint))
    try:
        snapshot = client.get_status(job_id)
    except StemClientError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(
            json.dumps(
                {
                    "id": snapshot.id,
                    "status": snapshot.status.value,
                    "progress": snapshot.progress if snapshot.has_progress else None,
                    "output_dir": snapshot.output_location,
                    "error": snapshot.error_message,
                },
                indent=2,
            )
        )
        return
    click.echo(f"Job {snapshot.id}: {snapshot.status.value} ({format_progress(snapshot)})")
    if snapshot.output_location:
        click.echo(f"Output: {snapshot.output_location}")
    error = visible_error(snapshot)
    if error:
        click.secho(error, fg="red")


@click.command(name="watch")
@click.argument("job_id")
@endpoint_option
@click.option(
    "interval",
    "--interval",
    type=float,
    default=Config.POLL_INTERVAL,
    show_default=True,
    help="Seconds between status checks",
)
def watch(job_id: str, endpoint: Optional[str], interval: float) -> None:
    """Poll JOB_ID until it completes, fails or is cancelled."""

    loop = EventLoop()
    orchestrator = JobOrchestrator(loop, resolve_settings(endpoint, interval=interval))
    try:
        job = follow_job(loop, orchestrator, job_id)
    finally:
        orchestrator.close()
        loop.close()
    click.echo(describe(job))
    if job.snapshot.status is not JobState.COMPLETED:
        raise SystemExit(1)
