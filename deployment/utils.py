import json
from pathlib import Path
from typing import Any, Dict

import yaml

from deployment.errors import ConfigurationError


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r", encoding="utf-8") as file:
        return json.load(file)


def _load_data_file(filepath: Path) -> Any:
    """Loads a JSON or YAML file, based on its suffix."""
    if filepath.suffix in (".yml", ".yaml"):
        return _load_yaml(filepath)
    return _load_json(filepath)


def validate_config(config: Dict) -> Dict:
    """
    Checks the top-level structure of a deployment parameters file
    and returns its 'deployment' section.
    """
    print("Validating parameters YAML...")

    if not isinstance(config, dict):
        raise ConfigurationError("Deployment parameters file is empty or malformed.")

    deployment = config.get("deployment")
    if not deployment:
        raise ConfigurationError("deployment is not set in params file.")

    network = deployment.get("network")
    if not network:
        raise ConfigurationError("network is not set in params file.")

    manifest = deployment.get("manifest")
    if not manifest:
        raise ConfigurationError("manifest filename is not set in params file.")

    contracts = config.get("contracts")
    if not contracts:
        raise ConfigurationError("Constructor parameters file missing 'contracts' field.")

    approvals = config.get("approvals") or []
    if not isinstance(approvals, list):
        raise ConfigurationError("'approvals' must be a list of registry/grantee entries.")

    return deployment
