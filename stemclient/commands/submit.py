"""CLI command to upload a WAV file and optionally follow the job.

Examples
--------
  stemclient submit track.wav
  stemclient submit track.wav --model balanced-six-stem --stem piano --stem vocals
  stemclient submit track.wav --no-wait
  stemclient submit track.wav --output stems/
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import click

from stemclient.commands.common import describe, endpoint_option, follow_job, resolve_settings
from stemclient.config import DEFAULT_MODEL, PROFILE_STEMS, Config
from stemclient.errors import StemClientError
from stemclient.loop import EventLoop
from stemclient.models import JobConfig, JobState
from stemclient.orchestrator import JobOrchestrator
from stemclient.utils import format_size


@click.command(name="submit")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "model",
    "--model",
    type=click.Choice(sorted(PROFILE_STEMS), case_sensitive=False),
    default=DEFAULT_MODEL,
    show_default=True,
    help="Model profile",
)
@click.option("stems", "--stem", multiple=True, help="Stem to extract (repeatable); must belong to the profile")
@endpoint_option
@click.option("--wait/--no-wait", default=True, show_default=True, help="Follow the job until it finishes")
@click.option(
    "output",
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for the stems archive once the job completes",
)
@click.option(
    "interval",
    "--interval",
    type=float,
    default=Config.POLL_INTERVAL,
    show_default=True,
    help="Seconds between status checks",
)
def submit(
    file: Path,
    model: str,
    stems: tuple[str, ...],
    endpoint: Optional[str],
    wait: bool,
    output: Optional[Path],
    interval: float,
) -> None:
    """Upload FILE for stem separation."""

    settings = resolve_settings(endpoint, interval=interval, output=output)
    loop = EventLoop()
    orchestrator = JobOrchestrator(loop, settings)
    try:
        config = JobConfig.create(model.lower(), stems)
        outcome: dict[str, Any] = {}
        click.echo(f"Uploading {file.name} ({format_size(file.stat().st_size)}) to {settings.endpoint}...")
        orchestrator.submit(
            file,
            config,
            on_success=lambda job: outcome.update(job=job),
            on_failure=lambda err: outcome.update(error=err),
        )
        loop.run_until(lambda: bool(outcome))
        if "error" in outcome:
            raise click.ClickException(str(outcome["error"]))
        job = outcome["job"]
        click.secho(f"Submitted job {job.id}", fg="green")
        if not wait:
            return

        job = follow_job(loop, orchestrator, job.id)
        click.echo(describe(job))
        if job.snapshot.status is not JobState.COMPLETED:
            raise SystemExit(1)
        if output is not None:
            saved: dict[str, Any] = {}
            orchestrator.trigger_download(
                job.id,
                on_success=lambda dest: saved.update(path=dest),
                on_failure=lambda err: saved.update(error=err),
            )
            loop.run_until(lambda: bool(saved))
            if "error" in saved:
                raise click.ClickException(str(saved["error"]))
            click.secho(f"Saved {saved['path']}", fg="green")
    except StemClientError as e:
        raise click.ClickException(str(e)) from e
    finally:
        orchestrator.close()
        loop.close()
