#!/usr/bin/python3

from deployment.constants import CONSTRUCTOR_PARAMS_DIR
from scripts.deploy import deploy_phase

VERIFY = True
CONSTRUCTOR_PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "base" / "protocol.yml"


def main():
    """
    Deploys the relay and keeper registries, OptimizerBase, the optimizer registry
    and AutoCompounderFactory on Base, then approves OptimizerBase on the optimizer
    registry and AutoCompounderFactory on the relay factory registry.

    ape run base deploy_protocol --network base:mainnet:alchemy
    """
    deploy_phase(params_filepath=CONSTRUCTOR_PARAMS_FILEPATH, verify=VERIFY)
