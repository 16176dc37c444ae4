#!/usr/bin/python3

from deployment.constants import CONSTRUCTOR_PARAMS_DIR
from scripts.deploy import deploy_phase

VERIFY = True
CONSTRUCTOR_PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "optimism" / "autoconverter.yml"


def main():
    """
    Deploys ConverterOptimizer and AutoConverterFactory on Optimism, on top of the
    autocompounder phase: the relay factory registry and the keeper registry are
    read from AutoCompounder.json, and the new factory is approved on the registry.

    ape run optimism deploy_autoconverter --network optimism:mainnet:infura
    """
    deploy_phase(params_filepath=CONSTRUCTOR_PARAMS_FILEPATH, verify=VERIFY)
