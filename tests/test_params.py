from collections import OrderedDict

import pytest

from deployment.approvals import ApprovalLink
from deployment.config import ConfigurationSource
from deployment.constants import CONSTRUCTOR_PARAMS_DIR
from deployment.errors import ConfigurationError, ResolutionError
from deployment.params import (
    ComponentSpec,
    ConfigReference,
    ContractReference,
    DeployerAccount,
    DeploymentParameters,
    ManifestReference,
    StepKind,
)
from deployment.pipeline import DeploymentPipeline
from tests.conftest import REGISTRY, InMemoryComponentFactory, address


@pytest.fixture
def params_config():
    return {
        "deployment": {"name": "phase-2", "network": "optimism", "manifest": "Phase2.json"},
        "contracts": [
            "Registry",
            {"KeeperRegistry": {"contract_type": "Registry"}},
            {
                "AutoConverterFactory": {
                    "constructor": OrderedDict(
                        [
                            ("_router", "$config:v2.Router"),
                            ("_optimizer", "$manifest:Optimizer"),
                            ("_keeperRegistry", "$KeeperRegistry"),
                            ("owner", "$deployer"),
                            ("tokens", ["$config:USDC", "0xdead"]),
                            ("fee", 30),
                        ]
                    )
                }
            },
        ],
        "approvals": [{"registry": "Registry", "grantee": "AutoConverterFactory"}],
    }


def test_parameters_from_config(params_config):
    parameters = DeploymentParameters.from_config(params_config)

    assert parameters.name == "phase-2"
    assert parameters.network == "optimism"
    assert parameters.manifest == "Phase2.json"
    assert parameters.prior_manifest is None
    assert parameters.merge_prior is False
    assert parameters.links == [ApprovalLink("Registry", "AutoConverterFactory")]

    registry, keeper_registry, factory = parameters.specs
    assert registry == ComponentSpec(name="Registry", contract_type=REGISTRY)
    assert keeper_registry == ComponentSpec(name="KeeperRegistry", contract_type=REGISTRY)
    assert factory.kind == StepKind.DEPLOY
    assert factory.arguments == (
        ("_router", ConfigReference("v2.Router")),
        ("_optimizer", ManifestReference("Optimizer")),
        ("_keeperRegistry", ContractReference("KeeperRegistry")),
        ("owner", DeployerAccount()),
        ("tokens", [ConfigReference("USDC"), "0xdead"]),
        ("fee", 30),
    )


def test_positional_constructor_parameters(params_config):
    params_config["contracts"].append({"Optimizer": {"constructor": ["$config:USDC", 5]}})
    parameters = DeploymentParameters.from_config(params_config)
    assert parameters.specs[-1].arguments == (("[0]", ConfigReference("USDC")), ("[1]", 5))


def test_attach_parameters(params_config):
    params_config["deployment"]["prior_manifest"] = "Phase1.json"
    params_config["deployment"]["merge_prior"] = True
    params_config["contracts"][0] = {"Registry": {"attach": "$manifest:Registry", "carry": True}}

    parameters = DeploymentParameters.from_config(params_config)

    assert parameters.prior_manifest == "Phase1.json"
    assert parameters.merge_prior is True
    registry = parameters.specs[0]
    assert registry.is_attachment
    assert registry.carry
    assert registry.address == ManifestReference("Registry")


def test_libraries(params_config):
    params_config["contracts"].insert(0, "SwapLib")
    params_config["contracts"].append(
        {"Optimizer": {"libraries": {"SwapLib": "$SwapLib"}, "constructor": {"fee": 1}}}
    )
    parameters = DeploymentParameters.from_config(params_config)
    assert parameters.specs[-1].libraries == (("SwapLib", ContractReference("SwapLib")),)


def test_undeclared_contract_reference(params_config):
    params_config["contracts"][2]["AutoConverterFactory"]["constructor"]["_keeperRegistry"] = (
        "$Keeper"
    )
    with pytest.raises(ResolutionError, match="Keeper referenced by AutoConverterFactory"):
        DeploymentParameters.from_config(params_config)


@pytest.mark.parametrize(
    "contract",
    [
        {"Registry": {"attach": "$manifest:Registry", "constructor": {"fee": 1}}},
        {"Registry": {"attach": None}},
        {"Registry": {"carry": True}},
        {"Registry": "not a mapping"},
        {"Registry": {}, "Other": {}},
        ["Registry"],
    ],
)
def test_malformed_contract_entries(params_config, contract):
    params_config["contracts"][0] = contract
    with pytest.raises(DeploymentParameters.Invalid):
        DeploymentParameters.from_config(params_config)


def test_merge_prior_requires_prior_manifest(params_config):
    params_config["deployment"]["merge_prior"] = True
    with pytest.raises(DeploymentParameters.Invalid, match="requires a 'prior_manifest'"):
        DeploymentParameters.from_config(params_config)


@pytest.mark.parametrize("section", ["deployment", "contracts"])
def test_missing_sections(params_config, section):
    del params_config[section]
    with pytest.raises(ConfigurationError, match="not set|missing"):
        DeploymentParameters.from_config(params_config)


@pytest.mark.parametrize("field", ["network", "manifest"])
def test_missing_deployment_fields(params_config, field):
    del params_config["deployment"][field]
    with pytest.raises(ConfigurationError, match=f"{field}.*not set"):
        DeploymentParameters.from_config(params_config)


def test_invalid_parameters_are_configuration_errors():
    assert issubclass(DeploymentParameters.Invalid, ConfigurationError)


@pytest.mark.parametrize(
    "params_file, prior_manifest",
    [
        ("base/protocol.yml", None),
        ("optimism/autocompounder.yml", None),
        (
            "optimism/autoconverter.yml",
            {"Registry": address(1), "KeeperRegistry": address(2)},
        ),
    ],
)
def test_bundled_deployment_parameters(params_file, prior_manifest):
    parameters = DeploymentParameters.from_yaml(CONSTRUCTOR_PARAMS_DIR / params_file)
    assert (parameters.prior_manifest is not None) == (prior_manifest is not None)

    pipeline = DeploymentPipeline(
        factory=InMemoryComponentFactory(),
        config=ConfigurationSource(),
        network=parameters.network,
    )
    pipeline.validate(parameters.specs, parameters.links, prior_manifest)


@pytest.mark.parametrize(
    "params_file, registries",
    [("base/protocol.yml", 3), ("optimism/autocompounder.yml", 2)],
)
def test_bundled_registries_start_empty(params_file, registries):
    parameters = DeploymentParameters.from_yaml(CONSTRUCTOR_PARAMS_DIR / params_file)
    factory = InMemoryComponentFactory()
    pipeline = DeploymentPipeline(
        factory=factory, config=ConfigurationSource(), network=parameters.network
    )
    pipeline.run(specs=parameters.specs, links=parameters.links)

    # each registry is constructed with a single, empty initial-entries array
    registry_args = [call[3] for call in factory.calls if call[:2] == ("deploy", REGISTRY)]
    assert registry_args == [([],)] * registries
