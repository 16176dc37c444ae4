from collections import defaultdict

import pytest
from eth_utils import to_checksum_address

from deployment.config import ConfigurationSource
from deployment.errors import DeploymentError, NotFoundError
from deployment.factory import ComponentFactory
from deployment.pipeline import DeploymentPipeline

# Common constants
NETWORK = "testnet"
REGISTRY = "Registry"

USDC = "0x7F5c764cBc14f9669B88837ca1490cCa17c31607"
WETH = "0x4200000000000000000000000000000000000006"
ROUTER = "0xa062aE8A9c5e11aaA026fc2670B0D65cCc8B2858"
VOTER = "0x41C914ee0c7E1A5edCD0295623e6dC557B5aBf3C"

CONSTANTS = {
    "USDC": USDC,
    "WETH": WETH,
    "Router": ROUTER,
    "v2": {"Router": ROUTER, "Voter": VOTER},
    "highLiquidityTokens": [USDC, WETH],
}


def address(index: int) -> str:
    return to_checksum_address(f"0x{index:040x}")


class InMemoryComponentFactory(ComponentFactory):
    """Records deployments and registry approvals instead of sending transactions."""

    def __init__(self, reject=(), deployer=None):
        self.reject = set(reject)
        self.deployer = deployer
        self.calls = list()
        self.contracts = dict()  # address -> contract type
        self.approved = defaultdict(set)  # registry address -> grantee addresses
        self.finalized = None
        self._nonce = 0x1000

    @property
    def deployer_address(self):
        return self.deployer

    def deploy(self, contract_type, libraries, *args):
        self.calls.append(("deploy", contract_type, libraries, args))
        if contract_type in self.reject:
            raise DeploymentError(f"{contract_type} reverted")
        self._nonce += 1
        contract_address = address(self._nonce)
        self.contracts[contract_address] = contract_type
        return contract_address

    def attach(self, contract_type, contract_address):
        self.calls.append(("attach", contract_type, contract_address))
        if self.contracts.get(contract_address) != contract_type:
            raise NotFoundError(f"No {contract_type} at {contract_address}")
        return contract_address

    def approve(self, registry_address, grantee_address):
        self.calls.append(("approve", registry_address, grantee_address))
        if self.contracts.get(registry_address) != REGISTRY:
            raise NotFoundError(f"No {REGISTRY} at {registry_address}")
        self.approved[registry_address].add(grantee_address)

    def finalize(self, components):
        self.finalized = list(components)

    def deployed_types(self):
        return [call[1] for call in self.calls if call[0] == "deploy"]


# Fixtures
@pytest.fixture
def config():
    return ConfigurationSource(constants={NETWORK: CONSTANTS})


@pytest.fixture
def factory():
    return InMemoryComponentFactory()


@pytest.fixture
def pipeline(factory, config):
    return DeploymentPipeline(factory=factory, config=config, network=NETWORK)


@pytest.fixture
def artifacts_dir(tmp_path):
    return tmp_path / "artifacts"
