from __future__ import annotations

from typing import Optional

import click

from stemclient.api import JobApiClient
from stemclient.commands.common import endpoint_option, resolve_settings
from stemclient.errors import StemClientError


@click.command(name="cancel")
@click.argument("job_id")
@endpoint_option
def cancel(job_id: str, endpoint: Optional[str]) -> None:
    """Ask the server to stop JOB_ID. A job the server no longer knows counts as cancelled."""

    client = JobApiClient.from_settings(resolve_settings(endpoint))
    try:
        client.cancel(job_id)
    except StemClientError as e:
        raise click.ClickException(str(e)) from e
    click.secho(f"Cancellation requested for job {job_id}", fg="green")
