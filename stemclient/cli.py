"""Command-line interface for stemclient using Click command groups."""

from __future__ import annotations

from typing import NoReturn
import logging

import click
from stemclient import __version__


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Log polling and request details to stderr")
def cli(verbose: bool) -> None:
    """stemclient: upload WAV files to Stemsmith and collect the separated stems."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register subcommands
from stemclient.commands.submit import submit  # noqa: E402
from stemclient.commands.watch import status, watch  # noqa: E402
from stemclient.commands.cancel import cancel  # noqa: E402
from stemclient.commands.download import download  # noqa: E402
from stemclient.commands.health import endpoint, health  # noqa: E402
from stemclient.commands.profiles import profiles  # noqa: E402

cli.add_command(submit)
cli.add_command(status)
cli.add_command(watch)
cli.add_command(cancel)
cli.add_command(download)
cli.add_command(health)
cli.add_command(endpoint)
cli.add_command(profiles)


def main() -> NoReturn:
    """Entry point for the CLI."""
    cli()
