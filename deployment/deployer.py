import os
import typing
from typing import Any, Dict, List, Optional

from ape import chain, compilers, networks, project
from ape.api import AccountAPI, ReceiptAPI
from ape.api.networks import LOCAL_NETWORK_NAME
from ape.cli.choices import select_account
from ape.contracts.base import ContractContainer, ContractInstance, ContractTransactionHandler
from ape.exceptions import ApeException, ContractLogicError, ContractNotFoundError
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from ethpm_types import MethodABI
from web3 import Web3

from deployment.confirm import _confirm_arguments, _continue
from deployment.constants import ALREADY_APPROVED_ERRORS
from deployment.errors import ConfigurationError, DeploymentError, NotFoundError
from deployment.factory import ComponentFactory
from deployment.params import DeployedComponent

REGISTRY_CONTRACT_TYPE = "Registry"

w3 = Web3()


def is_local_network() -> bool:
    network_name = networks.provider.network.name
    return network_name == LOCAL_NETWORK_NAME or network_name.endswith("-fork")


def _require_api_key(envvars: typing.Iterable[Optional[str]], service: str) -> None:
    envvars = [envvar for envvar in envvars if envvar]
    if not any(os.environ.get(envvar) for envvar in envvars):
        raise ConfigurationError(
            f"No {service} API key found in environment variables: "
            f"{', '.join(envvars) or '(none known for this network)'}"
        )


def check_plugins(verify: bool = False) -> None:
    """
    Checks the plugins a live deployment relies on: the explorer plugin
    when publishing sources, and the Infura plugin when it is the provider.
    """
    print("Checking plugins...")
    if is_local_network():
        return

    if verify:
        try:
            from ape_etherscan.utils import API_KEY_ENV_KEY_MAP
        except ImportError:
            raise ImportError("Please install the ape-etherscan plugin to verify contracts.")
        ecosystem = networks.provider.network.ecosystem.name
        _require_api_key([API_KEY_ENV_KEY_MAP.get(ecosystem)], service="explorer")

    if networks.provider.name == "infura":
        try:
            from ape_infura.provider import _ENVIRONMENT_VARIABLE_NAMES
        except ImportError:
            raise ImportError("Please install the ape-infura plugin to deploy through Infura.")
        _require_api_key(_ENVIRONMENT_VARIABLE_NAMES, service="Infura")


def check_chain_id(chain_id: Optional[int]) -> None:
    """Checks that the connected network matches the chain id of the deployment parameters."""
    if chain_id is None or is_local_network():
        return
    provider_chain_id = networks.provider.network.chain_id
    if chain_id != provider_chain_id:
        raise ConfigurationError(
            f"chain_id in params file ({chain_id}) does not match "
            f"chain_id of current network ({provider_chain_id})."
        )


def verify_contracts(contracts: List[ContractInstance]) -> None:
    """Publishes the sources of the given components to the network's explorer."""
    explorer = networks.provider.network.explorer
    for instance in contracts:
        print(f"(i) Publishing {instance.contract_type.name} at {instance.address}...")
        explorer.publish_contract(instance.address)


def get_contract_container(contract_type: str) -> ContractContainer:
    """Finds a contract type in the ape project, then in its dependencies."""
    if hasattr(project, contract_type):
        return getattr(project, contract_type)

    for dependency_name, versions in project.dependencies.items():
        if len(versions) > 1:
            raise ConfigurationError(f"Ambiguous {dependency_name} dependency for {contract_type}")
        dependency = next(iter(versions.values()))
        if hasattr(dependency, contract_type):
            return getattr(dependency, contract_type)

    raise NotFoundError(f"{contract_type} is not a contract type of this project.")


def _validate_method_args(
    method_abis: List[MethodABI], args: typing.Sequence[Any]
) -> typing.Dict[str, Any]:
    """Validates the transaction arguments against the function ABI."""
    if len(method_abis) == 0:
        raise ConfigurationError("No method abis provided for validation of args")

    abis_matching_args_length = [abi for abi in method_abis if len(abi.inputs) == len(args)]
    for abi in abis_matching_args_length:
        named_args = {}
        for arg, abi_input in zip(args, abi.inputs):
            if not w3.is_encodable(abi_input.type, arg):
                break
            named_args[abi_input.name] = arg
        else:
            return named_args
    raise ConfigurationError(
        f"Could not find ABI for '{method_abis[0].name}' with {len(args)} arg(s) and given type(s)"
    )


def _validate_constructor_abi_inputs(
    contract_name: str, abi_inputs: List[Any], args: typing.Sequence[Any]
) -> None:
    """Validates the constructor arguments against the constructor ABI."""
    if len(args) != len(abi_inputs):
        raise ConfigurationError(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(args)}."
        )

    for position, (abi_input, value) in enumerate(zip(abi_inputs, args)):
        if not w3.is_encodable(abi_input.type, value):
            raise ConfigurationError(
                f"{contract_name} constructor param '{abi_input.name}' at position {position} "
                f"has a value '{value}' whose type does not match expected ABI type "
                f"'{abi_input.type}'"
            )


def _is_already_approved(error: ContractLogicError) -> bool:
    # custom solidity errors surface as ContractLogicError subclasses named after the error
    return any(
        reason in str(error) or reason == type(error).__name__ for reason in ALREADY_APPROVED_ERRORS
    )


class Transactor:
    """
    Represents an ape account plus validated/annotated transaction execution.
    """

    def __init__(self, account: typing.Optional[AccountAPI] = None, autosign: bool = False):
        if account is None:
            self._account = select_account()
        else:
            self._account = account
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
        self._autosign = autosign
        self._account.set_autosign(autosign)

    def get_account(self) -> AccountAPI:
        """Returns the transactor account."""
        return self._account

    def transact(self, method: ContractTransactionHandler, *args) -> ReceiptAPI:
        named_args = _validate_method_args(method_abis=method.abis, args=args)
        base_message = (
            f"\nTransacting {method.contract.contract_type.name}"
            f"[{method.contract.address[:10]}].{method}"
        )
        if named_args:
            pretty_args = "\n\t".join(f"{k}={v}" for k, v in named_args.items())
            message = f"{base_message} with arguments:\n\t{pretty_args}"
        else:
            message = f"{base_message} with no arguments"
        print(message)
        if not self._autosign:
            _continue()

        return method(*args, sender=self._account)


class ApeComponentFactory(Transactor, ComponentFactory):
    """
    Component factory backed by the ape framework: contract containers come
    from the ape project, deployments and transactions are signed by the
    selected ape account and wait for their receipts.
    """

    def __init__(
        self,
        account: typing.Optional[AccountAPI] = None,
        autosign: bool = False,
        verify: bool = False,
        registry_type: str = REGISTRY_CONTRACT_TYPE,
    ):
        super().__init__(account, autosign)
        check_plugins(verify=verify)
        self.verify = verify
        self.registry_type = registry_type
        self._instances: typing.Dict[ChecksumAddress, ContractInstance] = dict()
        self._print_deployment_info()

    @property
    def deployer_address(self) -> Optional[ChecksumAddress]:
        return self.get_account().address

    def validate_arguments(self, contract_type: str, *args) -> None:
        container = get_contract_container(contract_type)
        _validate_constructor_abi_inputs(
            contract_name=contract_type,
            abi_inputs=container.constructor.abi.inputs,
            args=args,
        )

    def _link_libraries(self, libraries: Dict[str, ChecksumAddress]) -> None:
        for library_name, library_address in libraries.items():
            library = self.attach(library_name, library_address)
            print(f"Linking library {library_name} at {library_address}")
            compilers.solidity.add_library(library)

    def deploy(
        self, contract_type: str, libraries: Optional[Dict[str, ChecksumAddress]], *args
    ) -> ChecksumAddress:
        if libraries:
            self._link_libraries(libraries)
        container = get_contract_container(contract_type)
        if not self._autosign:
            _confirm_arguments(contract_type, args)
        try:
            instance = self._account.deploy(container, *args)
        except ApeException as e:
            raise DeploymentError(f"{contract_type} deployment rejected: {e}") from e

        address = to_checksum_address(instance.address)
        self._instances[address] = instance
        return address

    def attach(self, contract_type: str, address: ChecksumAddress) -> ContractInstance:
        container = get_contract_container(contract_type)
        if not chain.provider.get_code(address):
            raise NotFoundError(f"No contract code at {address} for {contract_type}.")
        try:
            return container.at(address)
        except ContractNotFoundError as e:
            raise NotFoundError(f"No {contract_type} at {address}: {e}") from e

    def approve(self, registry_address: ChecksumAddress, grantee_address: ChecksumAddress) -> None:
        registry = self.attach(self.registry_type, registry_address)
        try:
            self.transact(registry.approve, grantee_address)
        except ContractLogicError as e:
            if _is_already_approved(e):
                print(f"(i) {grantee_address} is already approved; nothing to do.")
                return
            raise DeploymentError(f"Registry at {registry_address} rejected approval: {e}") from e
        except ApeException as e:
            raise DeploymentError(f"Registry at {registry_address} rejected approval: {e}") from e

    def finalize(self, components: List[DeployedComponent]) -> None:
        """Optionally publishes the deployed contracts to the block explorer."""
        if not self.verify:
            return
        deployed = [self._instances[c.address] for c in components if c.address in self._instances]
        verify_contracts(contracts=deployed)

    def _print_deployment_info(self):
        print(
            f"Account: {self.get_account().address}",
            f"Verify: {self.verify}",
            f"Ecosystem: {networks.provider.network.ecosystem.name}",
            f"Network: {networks.provider.network.name}",
            f"Chain ID: {networks.provider.network.chain_id}",
            f"Gas Price: {networks.provider.gas_price}",
            sep="\n",
        )
