from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from eth_typing import ChecksumAddress

from deployment.params import DeployedComponent


class ComponentFactory(ABC):
    """
    Instantiates components on the target network.
    Every call blocks until the network has confirmed the result.
    """

    @property
    def deployer_address(self) -> Optional[ChecksumAddress]:
        return None

    def validate_arguments(self, contract_type: str, *args) -> None:
        """Checks constructor arguments before anything is deployed."""

    @abstractmethod
    def deploy(
        self, contract_type: str, libraries: Optional[Dict[str, ChecksumAddress]], *args
    ) -> ChecksumAddress:
        """Deploys a new component and returns its address; raises DeploymentError."""
        raise NotImplementedError

    @abstractmethod
    def attach(self, contract_type: str, address: ChecksumAddress) -> Any:
        """Binds to an existing component; raises NotFoundError."""
        raise NotImplementedError

    @abstractmethod
    def approve(self, registry_address: ChecksumAddress, grantee_address: ChecksumAddress) -> None:
        """Adds grantee to the registry's approved set; approving twice is a no-op."""
        raise NotImplementedError

    def finalize(self, components: List[DeployedComponent]) -> None:
        """Called once the manifest of a run has been written."""
