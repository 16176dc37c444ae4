import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from eth_typing import ChecksumAddress

from deployment.approvals import ApprovalLink
from deployment.config import ConfigurationSource
from deployment.constants import (
    CONFIG_PREFIX,
    DEPLOYER_INDICATOR,
    MANIFEST_PREFIX,
    VARIABLE_PREFIX,
    ZERO_ADDRESS,
)
from deployment.errors import ConfigurationError, ResolutionError
from deployment.manifest import ContractName, Manifest
from deployment.utils import _load_yaml, validate_config

CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"
CONTRACT_LIBRARIES_KEY = "libraries"
CONTRACT_TYPE_KEY = "contract_type"
CONTRACT_ATTACH_KEY = "attach"
CONTRACT_CARRY_KEY = "carry"


class StepKind(Enum):
    DEPLOY = "deploy"
    ATTACH = "attach"


class DeployedComponent(typing.NamedTuple):
    """A component produced by one executed step of a deployment run."""

    name: ContractName
    contract_type: str
    address: ChecksumAddress
    step: int
    kind: StepKind = StepKind.DEPLOY


class ComponentSpec(typing.NamedTuple):
    """
    A single deployment step.

    'arguments' and 'libraries' are ordered (name, value) pairs, where each value
    is either a literal or a Variable (see below). Attach steps bind to an
    existing component at 'address' instead of deploying a new one.
    """

    name: ContractName
    contract_type: str
    arguments: typing.Tuple[typing.Tuple[str, Any], ...] = ()
    libraries: typing.Tuple[typing.Tuple[str, Any], ...] = ()
    kind: StepKind = StepKind.DEPLOY
    address: Any = None
    carry: bool = False

    @property
    def is_attachment(self) -> bool:
        return self.kind == StepKind.ATTACH


class ResolutionContext:
    """
    The three namespaces searched by argument references: network configuration,
    the prior phase's manifest, and components produced earlier in this run.

    A component recorded as None is a placeholder for a step that has been
    validated but not executed (eager validation); it resolves to the zero address.
    """

    def __init__(
        self,
        network: str,
        config: ConfigurationSource,
        prior_manifest: Optional[Manifest] = None,
        components: Optional[typing.Dict[ContractName, Optional[DeployedComponent]]] = None,
        deployer: Optional[ChecksumAddress] = None,
    ):
        self.network = network
        self.config = config
        self.prior_manifest = prior_manifest or dict()
        self.components = components if components is not None else OrderedDict()
        self.deployer = deployer

    def config_value(self, path: str) -> Any:
        return self.config.get(self.network, path)

    def manifest_address(self, name: ContractName) -> ChecksumAddress:
        try:
            return self.prior_manifest[name]
        except KeyError:
            raise ResolutionError(f"'{name}' not found in the prior deployment manifest.")

    def component_address(self, name: ContractName) -> ChecksumAddress:
        if name not in self.components:
            raise ResolutionError(
                f"'{name}' has not been deployed earlier in this run; "
                "references must name a preceding step."
            )
        component = self.components[name]
        if component is None:
            # eager validation
            return ZERO_ADDRESS
        return component.address

    def address_of(self, name: ContractName) -> ChecksumAddress:
        """Resolves a name from this run, falling back to the prior manifest."""
        if name in self.components:
            return self.component_address(name)
        if name in self.prior_manifest:
            return self.prior_manifest[name]
        raise ResolutionError(
            f"'{name}' was neither produced by this run nor found in the prior manifest."
        )


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = VARIABLE_PREFIX

    @abstractmethod
    def resolve(self, context: ResolutionContext) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self), tuple(sorted(vars(self).items()))))


class DeployerAccount(Variable):
    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == DEPLOYER_INDICATOR

    def resolve(self, context: ResolutionContext) -> Any:
        if context.deployer is None:
            return ZERO_ADDRESS
        return context.deployer

    def __repr__(self) -> str:
        return f"${DEPLOYER_INDICATOR}"


class ConfigReference(Variable):
    def __init__(self, path: str):
        if not path:
            raise ConfigurationError("Empty configuration reference.")
        self.path = path

    @classmethod
    def is_config(cls, value: str) -> bool:
        return value.startswith(CONFIG_PREFIX)

    def resolve(self, context: ResolutionContext) -> Any:
        return context.config_value(self.path)

    def __repr__(self) -> str:
        return f"${CONFIG_PREFIX}{self.path}"


class ManifestReference(Variable):
    def __init__(self, contract_name: ContractName):
        if not contract_name:
            raise ConfigurationError("Empty manifest reference.")
        self.contract_name = contract_name

    @classmethod
    def is_manifest(cls, value: str) -> bool:
        return value.startswith(MANIFEST_PREFIX)

    def resolve(self, context: ResolutionContext) -> Any:
        return context.manifest_address(self.contract_name)

    def __repr__(self) -> str:
        return f"${MANIFEST_PREFIX}{self.contract_name}"


class ContractReference(Variable):
    """A reference to a component produced by an earlier step of the same run."""

    def __init__(self, contract_name: ContractName):
        if not contract_name:
            raise ConfigurationError("Empty contract reference.")
        self.contract_name = contract_name

    def resolve(self, context: ResolutionContext) -> Any:
        """Resolves a contract address."""
        return context.component_address(self.contract_name)

    def __repr__(self) -> str:
        return f"${self.contract_name}"


def _variable_from_value(variable: str) -> Variable:
    variable = variable[len(Variable.VARIABLE_PREFIX) :]
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount()
    elif ConfigReference.is_config(variable):
        return ConfigReference(variable[len(CONFIG_PREFIX) :])
    elif ManifestReference.is_manifest(variable):
        return ManifestReference(variable[len(MANIFEST_PREFIX) :])
    else:
        return ContractReference(variable)


def _process_raw_value(value: Any) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value)

    return value


def _resolve_param(value: Any, context: ResolutionContext) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, context) for v in value]

    if isinstance(value, Variable):
        return value.resolve(context)

    return value  # literally a value


def _resolve_params(
    component: ContractName, parameters: typing.Iterable, context: ResolutionContext
) -> OrderedDict:
    resolved_parameters = OrderedDict()
    for name, value in parameters:
        try:
            resolved_parameters[name] = _resolve_param(value, context)
        except (ResolutionError, ConfigurationError) as e:
            raise type(e)(f"{component} parameter '{name}' ({value!r}): {e}") from e
    return resolved_parameters


def resolve_arguments(spec: ComponentSpec, context: ResolutionContext) -> OrderedDict:
    """Resolves the constructor arguments of a single step, in declaration order."""
    return _resolve_params(spec.name, spec.arguments, context)


def resolve_libraries(spec: ComponentSpec, context: ResolutionContext) -> OrderedDict:
    """Resolves the linked library addresses of a single step."""
    return _resolve_params(spec.name, spec.libraries, context)


def resolve_attachment(spec: ComponentSpec, context: ResolutionContext) -> Any:
    """Resolves the address an attach step binds to."""
    resolved = _resolve_params(spec.name, [("address", spec.address)], context)
    return resolved["address"]


def _get_contract_names(config: typing.Dict) -> List[ContractName]:
    contract_names = list()
    for contract_info in config["contracts"]:
        if isinstance(contract_info, str):
            contract_names.append(contract_info)
        elif isinstance(contract_info, dict) and len(contract_info) == 1:
            contract_names.extend(list(contract_info.keys()))
        else:
            raise DeploymentParameters.Invalid("Malformed contracts entry in parameters YAML.")

    return contract_names


def _process_named_values(values: Any, field: str, contract_name: ContractName) -> tuple:
    if values is None:
        return ()
    if isinstance(values, dict):
        items = values.items()
    elif isinstance(values, list) and field == CONTRACT_CONSTRUCTOR_PARAMETER_KEY:
        # positional constructor arguments
        items = ((f"[{position}]", value) for position, value in enumerate(values))
    else:
        raise DeploymentParameters.Invalid(f"Malformed '{field}' for {contract_name}.")
    return tuple((name, _process_raw_value(value)) for name, value in items)


def _component_spec(contract_name: ContractName, contract_data: Optional[Dict]) -> ComponentSpec:
    contract_data = contract_data or dict()
    if not isinstance(contract_data, dict):
        raise DeploymentParameters.Invalid(f"Malformed parameters for {contract_name}.")

    contract_type = contract_data.get(CONTRACT_TYPE_KEY, contract_name)
    carry = bool(contract_data.get(CONTRACT_CARRY_KEY, False))

    if CONTRACT_ATTACH_KEY in contract_data:
        if CONTRACT_CONSTRUCTOR_PARAMETER_KEY in contract_data:
            raise DeploymentParameters.Invalid(
                f"{contract_name} cannot both attach to an existing contract "
                "and specify constructor parameters."
            )
        address = contract_data[CONTRACT_ATTACH_KEY]
        if address is None or isinstance(address, list):
            raise DeploymentParameters.Invalid(f"Malformed attach address for {contract_name}.")
        return ComponentSpec(
            name=contract_name,
            contract_type=contract_type,
            kind=StepKind.ATTACH,
            address=_process_raw_value(address),
            carry=carry,
        )

    if carry:
        raise DeploymentParameters.Invalid(
            f"'{CONTRACT_CARRY_KEY}' only applies to attached contracts ({contract_name})."
        )

    return ComponentSpec(
        name=contract_name,
        contract_type=contract_type,
        arguments=_process_named_values(
            contract_data.get(CONTRACT_CONSTRUCTOR_PARAMETER_KEY),
            CONTRACT_CONSTRUCTOR_PARAMETER_KEY,
            contract_name,
        ),
        libraries=_process_named_values(
            contract_data.get(CONTRACT_LIBRARIES_KEY), CONTRACT_LIBRARIES_KEY, contract_name
        ),
    )


def _validate_references(specs: List[ComponentSpec]) -> None:
    """Checks that in-run references name declared contracts."""
    declared = set(spec.name for spec in specs)

    def check(value: Any, contract_name: ContractName) -> None:
        if isinstance(value, list):
            for v in value:
                check(v, contract_name)
        elif isinstance(value, ContractReference) and value.contract_name not in declared:
            raise ResolutionError(
                f"Contract name {value.contract_name} referenced by {contract_name} not found"
            )

    for spec in specs:
        for _, value in (*spec.arguments, *spec.libraries, ("address", spec.address)):
            check(value, spec.name)


class DeploymentParameters:
    """Represents the parameters of one deployment phase, loaded from a YAML file."""

    class Invalid(ConfigurationError):
        """Raised when the deployment parameters are invalid"""

    def __init__(
        self,
        name: str,
        network: str,
        manifest: str,
        specs: List[ComponentSpec],
        links: Optional[List[ApprovalLink]] = None,
        prior_manifest: Optional[str] = None,
        merge_prior: bool = False,
        chain_id: Optional[int] = None,
        path: Optional[Path] = None,
    ):
        self.name = name
        self.network = network
        self.manifest = manifest
        self.specs = list(specs)
        self.links = list(links or [])
        self.prior_manifest = prior_manifest
        self.merge_prior = merge_prior
        self.chain_id = chain_id
        self.path = path

        if merge_prior and not prior_manifest:
            raise self.Invalid("'merge_prior' requires a 'prior_manifest'.")
        _validate_references(self.specs)

    @classmethod
    def from_config(
        cls, config: typing.Dict, path: Optional[Path] = None
    ) -> "DeploymentParameters":
        """Loads the deployment steps and approval links from a parsed parameters file."""
        print("Processing contract constructor parameters...")
        deployment = validate_config(config)
        _get_contract_names(config)  # structural validation

        specs = list()
        for contract_info in config["contracts"]:
            if isinstance(contract_info, str):
                specs.append(_component_spec(contract_info, None))
            else:
                contract_name = list(contract_info.keys())[0]  # only one entry
                specs.append(_component_spec(contract_name, contract_info[contract_name]))

        links = [ApprovalLink.from_config(entry) for entry in config.get("approvals") or []]

        chain_id = deployment.get("chain_id")
        return cls(
            name=deployment.get("name") or (path.stem if path else deployment["network"]),
            network=deployment["network"],
            manifest=deployment["manifest"],
            specs=specs,
            links=links,
            prior_manifest=deployment.get("prior_manifest"),
            merge_prior=bool(deployment.get("merge_prior", False)),
            chain_id=int(chain_id) if chain_id is not None else None,
            path=path,
        )

    @classmethod
    def from_yaml(cls, filepath: Path) -> "DeploymentParameters":
        config = _load_yaml(filepath)
        return cls.from_config(config, path=Path(filepath))
