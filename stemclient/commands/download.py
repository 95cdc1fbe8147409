from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from stemclient.api import JobApiClient
from stemclient.commands.common import endpoint_option, resolve_settings
from stemclient.download import FileSaver
from stemclient.errors import StemClientError
from stemclient.utils import format_size
from stemclient.view import can_download


@click.command(name="download")
@click.argument("job_id")
@endpoint_option
@click.option(
    "output",
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Destination directory (default: ./downloads)",
)
def download(job_id: str, endpoint: Optional[str], output: Optional[Path]) -> None:
    """Download the stems archive of a completed JOB_ID."""

    settings = resolve_settings(endpoint, output=output)
    client = JobApiClient.from_settings(settings)
    try:
        snapshot = client.get_status(job_id)
        if not can_download(snapshot):
            raise click.ClickException(
                f"Job {job_id} is {snapshot.status.value}; stems can only be downloaded once it has completed"
            )
        payload = client.download(job_id)
    except StemClientError as e:
        raise click.ClickException(str(e)) from e

    try:
        dest = FileSaver(settings.download_dir)(job_id, payload)
    except OSError as e:
        raise click.ClickException(f"Could not save download: {e}") from e
    click.secho(f"Saved {dest} ({format_size(len(payload))})", fg="green")
