import json

import pytest

from deployment.config import ConfigurationSource
from deployment.errors import ConfigurationError, MissingConfigError
from tests.conftest import NETWORK, ROUTER, USDC, WETH


def test_get_dotted_path(config):
    assert config.get(NETWORK, "USDC") == USDC
    assert config.get(NETWORK, "v2.Router") == ROUTER
    assert config.get(NETWORK, "highLiquidityTokens") == [USDC, WETH]


@pytest.mark.parametrize("path", ["OP", "v2.Forwarder", "USDC.address", "v3.Router"])
def test_missing_path(config, path):
    with pytest.raises(MissingConfigError, match=f"'{path}' not found for network '{NETWORK}'"):
        config.get(NETWORK, path)


def test_missing_config_is_a_configuration_error():
    assert issubclass(MissingConfigError, ConfigurationError)


def test_load_json_constants(tmp_path):
    (tmp_path / "optimism.json").write_text(json.dumps({"v2": {"Router": ROUTER}}))
    config = ConfigurationSource(config_dir=tmp_path)
    assert config.get("optimism", "v2.Router") == ROUTER


def test_load_yaml_constants(tmp_path):
    (tmp_path / "base.yml").write_text(f"USDC: '{USDC}'\nv2:\n  Router: '{ROUTER}'\n")
    config = ConfigurationSource(config_dir=tmp_path)
    assert config.get("base", "USDC") == USDC
    assert config.get("base", "v2.Router") == ROUTER


def test_constants_are_loaded_once(tmp_path):
    filepath = tmp_path / "base.json"
    filepath.write_text(json.dumps({"USDC": USDC}))
    config = ConfigurationSource(config_dir=tmp_path)
    assert config.get("base", "USDC") == USDC

    filepath.write_text(json.dumps({"USDC": WETH}))
    assert config.get("base", "USDC") == USDC


def test_missing_network(tmp_path):
    config = ConfigurationSource(config_dir=tmp_path)
    with pytest.raises(ConfigurationError, match="No configuration file found for network"):
        config.get("base", "USDC")


def test_malformed_network_config(tmp_path):
    (tmp_path / "base.json").write_text(json.dumps([USDC]))
    config = ConfigurationSource(config_dir=tmp_path)
    with pytest.raises(ConfigurationError, match="Malformed network configuration"):
        config.get("base", "USDC")
