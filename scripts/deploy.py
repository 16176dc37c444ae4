#!/usr/bin/python3
from pathlib import Path
from typing import Optional

import click
from ape.api import AccountAPI
from ape.cli import ConnectedProviderCommand, account_option, network_option

from deployment.config import ConfigurationSource
from deployment.constants import ARTIFACTS_DIR
from deployment.errors import DeploymentPipelineError
from deployment.deployer import ApeComponentFactory, check_chain_id
from deployment.manifest import Manifest
from deployment.options import (
    artifacts_dir_option,
    autosign_option,
    params_file_option,
    verify_option,
)
from deployment.params import DeploymentParameters
from deployment.pipeline import run_phase


def deploy_phase(
    params_filepath: Path,
    account: Optional[AccountAPI] = None,
    autosign: bool = False,
    verify: bool = False,
    artifacts_dir: Path = ARTIFACTS_DIR,
) -> Manifest:
    """Deploys one phase described by a parameters YAML file."""
    parameters = DeploymentParameters.from_yaml(filepath=params_filepath)
    check_chain_id(parameters.chain_id)
    factory = ApeComponentFactory(account=account, autosign=autosign, verify=verify)
    return run_phase(
        parameters=parameters,
        factory=factory,
        config=ConfigurationSource(),
        artifacts_dir=artifacts_dir,
    )


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@params_file_option
@artifacts_dir_option
@autosign_option
@verify_option
def cli(network, account, params_file, artifacts_dir, autosign, verify):
    """Deploy the contracts of a deployment phase and write its manifest."""
    try:
        deploy_phase(
            params_filepath=params_file,
            account=account,
            autosign=autosign,
            verify=verify,
            artifacts_dir=artifacts_dir,
        )
    except DeploymentPipelineError as e:
        raise click.ClickException(
            f"{type(e).__name__}: {e}\nDeployment aborted; no manifest was written."
        )


if __name__ == "__main__":
    cli()
