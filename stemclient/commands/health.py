"""CLI commands for the API endpoint: reachability and the saved default."""

from __future__ import annotations

from typing import Optional

import click

from stemclient.api import JobApiClient
from stemclient.commands.common import endpoint_option, endpoint_store, resolve_settings
from stemclient.config import Config
from stemclient.endpoint import load_endpoint, normalize_endpoint, save_endpoint
from stemclient.errors import StemClientError


@click.command(name="health")
@endpoint_option
def health(endpoint: Optional[str]) -> None:
    """Check whether the API endpoint is reachable."""

    settings = resolve_settings(endpoint)
    try:
        JobApiClient.from_settings(settings).health()
    except StemClientError as e:
        click.secho(f"fail: {settings.endpoint} ({e})", fg="red", err=True)
        raise SystemExit(1)
    click.secho(f"ok: {settings.endpoint}", fg="green")


@click.command(name="endpoint")
@click.argument("url", required=False)
def endpoint(url: Optional[str]) -> None:
    """Show the saved API endpoint, or save URL as the new default."""

    store = endpoint_store()
    if url is None:
        click.echo(load_endpoint(store, Config.DEFAULT_ENDPOINT))
        return
    value = normalize_endpoint(url)
    if not value:
        raise click.ClickException("Endpoint must not be empty")
    save_endpoint(store, value)
    click.echo(value)
