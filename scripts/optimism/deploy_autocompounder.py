#!/usr/bin/python3

from deployment.constants import CONSTRUCTOR_PARAMS_DIR
from scripts.deploy import deploy_phase

VERIFY = True
CONSTRUCTOR_PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "optimism" / "autocompounder.yml"


def main():
    """
    Deploys the registries, CompoundOptimizer and AutoCompounderFactory on Optimism.

    ape run optimism deploy_autocompounder --network optimism:mainnet:infura
    """
    deploy_phase(params_filepath=CONSTRUCTOR_PARAMS_FILEPATH, verify=VERIFY)
