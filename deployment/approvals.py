import typing
from enum import Enum
from typing import Any, Callable, List

from eth_typing import ChecksumAddress

from deployment.errors import ConfigurationError, DeploymentError

REGISTRY_KEY = "registry"
GRANTEE_KEY = "grantee"


class ApprovalState(Enum):
    """
    Membership of a grantee in a registry's approved set.
    Approvals are only ever appended; there is no transition back to UNKNOWN.
    """

    UNKNOWN = 0
    APPROVED = 1


class ApprovalLink(typing.NamedTuple):
    """Declares that 'registry' must approve 'grantee' once both have addresses."""

    registry: str
    grantee: str

    @classmethod
    def from_config(cls, entry: Any) -> "ApprovalLink":
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Malformed approval entry: {entry!r}.")
        try:
            registry, grantee = entry[REGISTRY_KEY], entry[GRANTEE_KEY]
        except KeyError:
            raise ConfigurationError(
                f"Approval entry {entry!r} must specify '{REGISTRY_KEY}' and '{GRANTEE_KEY}'."
            )
        if not registry or not grantee or len(entry) != 2:
            raise ConfigurationError(f"Malformed approval entry: {entry!r}.")
        return cls(registry=str(registry), grantee=str(grantee))

    def __str__(self) -> str:
        return f"{self.registry}.approve({self.grantee})"


class ApprovalRecord(typing.NamedTuple):
    link: ApprovalLink
    registry_address: ChecksumAddress
    grantee_address: ChecksumAddress
    state: ApprovalState = ApprovalState.UNKNOWN


def issue_approvals(
    links: typing.Iterable[ApprovalLink],
    resolve: Callable[[str], ChecksumAddress],
    factory,
) -> List[ApprovalRecord]:
    """
    Issues registry approvals in declaration order.

    Membership is never queried beforehand: approving an already approved
    grantee is a no-op on the registry side, so re-running a partially
    completed phase re-issues the same approvals safely.
    """
    records = list()
    for link in links:
        registry_address = resolve(link.registry)
        grantee_address = resolve(link.grantee)
        print(
            f"\nApproving {link.grantee} ({grantee_address}) "
            f"on {link.registry} ({registry_address})"
        )
        try:
            factory.approve(registry_address, grantee_address)
        except DeploymentError as e:
            raise type(e)(f"Approval {link} failed: {e}") from e
        records.append(
            ApprovalRecord(
                link=link,
                registry_address=registry_address,
                grantee_address=grantee_address,
                state=ApprovalState.APPROVED,
            )
        )
    return records
