import json
import typing
from collections import OrderedDict
from pathlib import Path
from typing import List, Optional, Sequence

from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address

from deployment.approvals import ApprovalLink, ApprovalRecord, issue_approvals
from deployment.config import ConfigurationSource
from deployment.constants import ARTIFACTS_DIR
from deployment.errors import (
    ConfigurationError,
    DeploymentError,
    PersistenceError,
    ResolutionError,
)
from deployment.factory import ComponentFactory
from deployment.manifest import (
    STANDARD_MANIFEST_JSON_FORMAT,
    Manifest,
    manifest_filepath,
    merge_manifests,
    read_manifest,
    write_manifest,
)
from deployment.params import (
    ComponentSpec,
    DeployedComponent,
    DeploymentParameters,
    ResolutionContext,
    resolve_arguments,
    resolve_attachment,
    resolve_libraries,
)


def _checksum(spec: ComponentSpec, address) -> ChecksumAddress:
    if not isinstance(address, str) or not is_address(address):
        raise ResolutionError(f"{spec.name} resolved to an invalid address: {address!r}.")
    return to_checksum_address(address)


class DeploymentPipeline:
    """
    Executes an ordered list of deployment steps against a component factory,
    then issues registry approvals.

    Steps run strictly in the given order, one at a time; each factory call
    returns only once the deployment is final. The resolution table
    ('deployments') is scoped to a single run.
    """

    def __init__(
        self,
        factory: ComponentFactory,
        config: ConfigurationSource,
        network: str,
    ):
        self.factory = factory
        self.config = config
        self.network = network
        self.deployments: typing.OrderedDict[str, DeployedComponent] = OrderedDict()
        self.approvals: List[ApprovalRecord] = list()

    def _context(self, prior_manifest: Optional[Manifest], components) -> ResolutionContext:
        return ResolutionContext(
            network=self.network,
            config=self.config,
            prior_manifest=prior_manifest,
            components=components,
            deployer=self.factory.deployer_address,
        )

    def validate(
        self,
        specs: Sequence[ComponentSpec],
        links: Sequence[ApprovalLink] = (),
        prior_manifest: Optional[Manifest] = None,
    ) -> None:
        """
        Resolves every step against placeholders before anything is deployed.
        Missing configuration raises ConfigurationError; references to unknown,
        later or missing components raise ResolutionError.
        """
        print("Validating deployment steps...")
        placeholders = OrderedDict()
        context = self._context(prior_manifest, placeholders)
        for step, spec in enumerate(specs):
            if spec.name in placeholders:
                raise ConfigurationError(
                    f"Contract name {spec.name} is declared more than once (step {step})."
                )
            if spec.is_attachment:
                if spec.address is None:
                    raise ConfigurationError(f"{spec.name} has no address to attach to.")
                _checksum(spec, resolve_attachment(spec, context))
            else:
                resolve_libraries(spec, context)
                arguments = resolve_arguments(spec, context)
                self.factory.validate_arguments(spec.contract_type, *arguments.values())
            placeholders[spec.name] = None

        for link in links:
            try:
                context.address_of(link.registry)
                context.address_of(link.grantee)
            except ResolutionError as e:
                raise ResolutionError(f"Approval {link}: {e}") from e

    def run(
        self,
        specs: Sequence[ComponentSpec],
        links: Sequence[ApprovalLink] = (),
        prior_manifest: Optional[Manifest] = None,
    ) -> Manifest:
        """
        Deploys (or attaches) each step in order, issues the approvals and
        returns a manifest of the names introduced by this run.
        The prior manifest is only read, never modified.
        """
        prior_manifest = OrderedDict(prior_manifest or {})
        self.validate(specs, links, prior_manifest)

        self.deployments = OrderedDict()
        self.approvals = list()
        context = self._context(prior_manifest, self.deployments)
        for step, spec in enumerate(specs):
            self.deployments[spec.name] = self._execute(step, spec, context)

        self.approvals = issue_approvals(links, resolve=context.address_of, factory=self.factory)

        manifest = OrderedDict()
        for spec in specs:
            if spec.is_attachment and not spec.carry:
                continue
            manifest[spec.name] = self.deployments[spec.name].address
        return manifest

    def _execute(
        self, step: int, spec: ComponentSpec, context: ResolutionContext
    ) -> DeployedComponent:
        if spec.is_attachment:
            address = _checksum(spec, resolve_attachment(spec, context))
            print(f"\nAttaching {spec.name} ({spec.contract_type}) at {address}")
            try:
                self.factory.attach(spec.contract_type, address)
            except DeploymentError as e:
                raise type(e)(f"Step {step} ({spec.name}): {e}") from e
        else:
            libraries = resolve_libraries(spec, context)
            arguments = resolve_arguments(spec, context)
            self._print_step(step, spec, arguments)
            try:
                address = self.factory.deploy(
                    spec.contract_type, libraries or None, *arguments.values()
                )
            except DeploymentError as e:
                raise type(e)(f"Step {step} ({spec.name}): {e}") from e
            address = _checksum(spec, address)
            print(f"{spec.name} deployed to {address}")

        return DeployedComponent(
            name=spec.name,
            contract_type=spec.contract_type,
            address=address,
            step=step,
            kind=spec.kind,
        )

    @staticmethod
    def _print_step(step: int, spec: ComponentSpec, arguments: OrderedDict) -> None:
        title = f"\n[{step}] Deploying {spec.name}"
        if spec.name != spec.contract_type:
            title = f"{title} (as {spec.contract_type})"
        if not arguments:
            print(f"{title} with no constructor parameters")
            return
        print(f"{title} with constructor parameters:")
        for name, value in arguments.items():
            print(f"\t{name}={value}")


def run_phase(
    parameters: DeploymentParameters,
    factory: ComponentFactory,
    config: ConfigurationSource,
    artifacts_dir: Path = ARTIFACTS_DIR,
) -> Manifest:
    """
    Runs one deployment phase end to end: reads the prior phase's manifest,
    executes the pipeline and writes the resulting manifest.

    Any failure before the manifest is written propagates and nothing is written.
    A failure to write the manifest is reported, together with the deployed
    addresses, but does not raise, since the deployments themselves cannot be undone.
    """
    network = parameters.network
    print(f"Deployment phase '{parameters.name}' on {network}")

    prior_manifest = None
    if parameters.prior_manifest:
        prior_filepath = manifest_filepath(network, parameters.prior_manifest, artifacts_dir)
        prior_manifest = read_manifest(prior_filepath)
        if prior_manifest is None:
            raise ConfigurationError(f"Prior deployment manifest not found at {prior_filepath}.")
        print(f"Loaded {len(prior_manifest)} entries from prior manifest {prior_filepath}")

    pipeline = DeploymentPipeline(factory=factory, config=config, network=network)
    manifest = pipeline.run(
        specs=parameters.specs, links=parameters.links, prior_manifest=prior_manifest
    )
    if parameters.merge_prior:
        manifest = merge_manifests(prior_manifest, manifest)

    output_filepath = manifest_filepath(network, parameters.manifest, artifacts_dir)
    if output_filepath.exists():
        print(f"Replacing existing manifest at {output_filepath}.")
    try:
        write_manifest(manifest, filepath=output_filepath)
    except PersistenceError as e:
        print(f"\n! {e}")
        print("Deployed addresses:")
        print(json.dumps(manifest, **STANDARD_MANIFEST_JSON_FORMAT))

    factory.finalize(list(pipeline.deployments.values()))
    return manifest
