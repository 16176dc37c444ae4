import typing
from pathlib import Path
from typing import Any, Dict, Optional

from deployment.constants import NETWORK_CONFIG_DIR, NETWORK_CONFIG_SUFFIXES
from deployment.errors import ConfigurationError, MissingConfigError
from deployment.utils import _load_data_file

PATH_DELIMITER = "."


def _lookup(constants: Dict[str, Any], path: str) -> Any:
    """Walks a dotted path (e.g. 'v2.Router') through nested mappings."""
    value = constants
    for key in path.split(PATH_DELIMITER):
        if not isinstance(value, dict) or key not in value:
            raise KeyError(path)
        value = value[key]
    return value


class ConfigurationSource:
    """
    Read-only, network-scoped static constants (token addresses, routers, liquidity lists).

    Constants for each network are loaded once, on first access, from
    '<config_dir>/<network>.json' (or .yml). Preloaded constants can be
    supplied directly, which is how tests and ad-hoc scripts use it.
    """

    def __init__(
        self,
        config_dir: Path = NETWORK_CONFIG_DIR,
        constants: Optional[typing.Dict[str, Dict[str, Any]]] = None,
    ):
        self.config_dir = Path(config_dir)
        self._constants = dict(constants or {})

    def filepath(self, network: str) -> Path:
        for suffix in NETWORK_CONFIG_SUFFIXES:
            candidate = self.config_dir / f"{network}{suffix}"
            if candidate.exists():
                return candidate
        raise ConfigurationError(
            f"No configuration file found for network '{network}' in {self.config_dir}."
        )

    def constants(self, network: str) -> Dict[str, Any]:
        """Returns all constants for a network, loading them if needed."""
        if network not in self._constants:
            filepath = self.filepath(network)
            data = _load_data_file(filepath)
            if not isinstance(data, dict):
                raise ConfigurationError(f"Malformed network configuration at {filepath}.")
            self._constants[network] = data
        return self._constants[network]

    def get(self, network: str, path: str) -> Any:
        """Returns the value at a dotted path for a network."""
        try:
            return _lookup(self.constants(network), path)
        except KeyError:
            raise MissingConfigError(
                f"Configuration value '{path}' not found for network '{network}'."
            )
