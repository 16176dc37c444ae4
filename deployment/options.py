from pathlib import Path

import click

from deployment.constants import ARTIFACTS_DIR
from deployment.types import ChecksumAddress

params_file_option = click.option(
    "--params-file",
    "-p",
    help="Deployment parameters YAML file",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    required=True,
)

artifacts_dir_option = click.option(
    "--artifacts-dir",
    help="Directory where deployment manifests are read from and written to",
    type=click.Path(file_okay=False, path_type=Path),
    default=ARTIFACTS_DIR,
    show_default=True,
)

autosign_option = click.option(
    "--autosign",
    help="Sign deployments and transactions without asking for confirmation",
    is_flag=True,
    default=False,
)

verify_option = click.option(
    "--verify",
    help="Publish deployed contracts to the network's block explorer",
    is_flag=True,
    default=False,
)

registry_address_option = click.option(
    "--registry",
    "-r",
    help="Address of the registry that grants the approval",
    type=ChecksumAddress(),
    required=True,
)

grantee_address_option = click.option(
    "--grantee",
    "-g",
    help="Address to approve on the registry",
    type=ChecksumAddress(),
    required=True,
)
