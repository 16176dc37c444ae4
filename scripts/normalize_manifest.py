#!/usr/bin/python3
from pathlib import Path

import click

from deployment.manifest import normalize_manifest


@click.command()
@click.option(
    "--manifest",
    help="Filepath to manifest file",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=True,
)
def cli(manifest):
    """Normalize a manifest file so every entry is a checksummed address string."""
    normalize_manifest(manifest)


if __name__ == "__main__":
    cli()
