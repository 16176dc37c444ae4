#!/usr/bin/python3

import click
from ape.cli import ConnectedProviderCommand, account_option, network_option

from deployment.errors import DeploymentPipelineError
from deployment.deployer import ApeComponentFactory
from deployment.options import autosign_option, grantee_address_option, registry_address_option


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@account_option()
@registry_address_option
@grantee_address_option
@autosign_option
def cli(network, account, registry, grantee, autosign):
    """
    Approve a grantee on an already deployed registry.
    Used to finish a phase whose approvals were not all issued.
    """
    factory = ApeComponentFactory(account=account, autosign=autosign)
    try:
        factory.approve(registry, grantee)
    except DeploymentPipelineError as e:
        raise click.ClickException(f"{type(e).__name__}: {e}")
    print(f"(i) {grantee} approved on registry {registry}")


if __name__ == "__main__":
    cli()
