from __future__ import annotations

import click

from stemclient.config import DEFAULT_MODEL, MODEL_LABELS, PROFILE_STEMS, STEM_LABELS


@click.command(name="profiles")
def profiles() -> None:
    """List model profiles and the stems each one can produce."""

    for key, stems in PROFILE_STEMS.items():
        marker = " (default)" if key == DEFAULT_MODEL else ""
        click.echo(f"{key}{marker}: {MODEL_LABELS.get(key, key)}")
        click.echo("  stems: " + ", ".join(f"{s} ({STEM_LABELS.get(s, s)})" for s in stems))
