#!/usr/bin/python3
from pathlib import Path

import click

from deployment.manifest import merge_manifest_files


@click.command()
@click.option(
    "--manifest-1",
    help="Filepath to manifest file 1",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=True,
)
@click.option(
    "--manifest-2",
    help="Filepath to manifest file 2; its entries win on conflict",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=True,
)
@click.option(
    "--output-manifest",
    "-o",
    help="Filepath of output manifest file",
    type=click.Path(dir_okay=False, exists=False, path_type=Path),
    required=True,
)
@click.option(
    "--deprecated-contract",
    "-d",
    "deprecated_contracts",
    help="Names of any deprecated contracts to exclude from the merge",
    required=False,
    multiple=True,
)
def cli(manifest_1, manifest_2, output_manifest, deprecated_contracts):
    """Merge two deployment manifests into one."""
    merge_manifest_files(
        manifest_1_filepath=manifest_1,
        manifest_2_filepath=manifest_2,
        output_filepath=output_manifest,
        deprecated_contracts=deprecated_contracts,
    )


if __name__ == "__main__":
    cli()
