import pytest

from deployment.approvals import ApprovalLink, ApprovalRecord, ApprovalState, issue_approvals
from deployment.errors import ConfigurationError, NotFoundError
from tests.conftest import REGISTRY, address


@pytest.fixture
def addresses(factory):
    registry_address = factory.deploy(REGISTRY, None)
    grantee_address = factory.deploy("AutoCompounderFactory", None)
    return {"Registry": registry_address, "Factory": grantee_address}


def test_approval_is_idempotent(factory, addresses):
    link = ApprovalLink(registry="Registry", grantee="Factory")

    first = issue_approvals([link], resolve=addresses.__getitem__, factory=factory)
    approved = set(factory.approved[addresses["Registry"]])
    second = issue_approvals([link], resolve=addresses.__getitem__, factory=factory)

    assert first == second
    assert approved == {addresses["Factory"]}
    assert factory.approved[addresses["Registry"]] == approved
    assert [call[0] for call in factory.calls].count("approve") == 2


def test_approvals_follow_declaration_order(factory, addresses):
    addresses["Other"] = factory.deploy("AutoConverterFactory", None)
    links = [ApprovalLink("Registry", "Other"), ApprovalLink("Registry", "Factory")]

    records = issue_approvals(links, resolve=addresses.__getitem__, factory=factory)

    assert [record.link for record in records] == links
    assert all(record.state == ApprovalState.APPROVED for record in records)
    approvals = [call[2] for call in factory.calls if call[0] == "approve"]
    assert approvals == [addresses["Other"], addresses["Factory"]]


def test_approval_on_missing_registry(factory, addresses):
    addresses["Missing"] = address(404)
    link = ApprovalLink("Missing", "Factory")
    with pytest.raises(NotFoundError, match=r"Approval Missing.approve\(Factory\) failed"):
        issue_approvals([link], resolve=addresses.__getitem__, factory=factory)


def test_approval_link_from_config():
    link = ApprovalLink.from_config({"registry": "KeeperRegistry", "grantee": "Factory"})
    assert link == ApprovalLink("KeeperRegistry", "Factory")
    assert str(link) == "KeeperRegistry.approve(Factory)"


@pytest.mark.parametrize(
    "entry",
    [
        "Registry",
        {"registry": "Registry"},
        {"registry": "Registry", "grantee": ""},
        {"registry": "Registry", "grantee": "Factory", "revoke": True},
    ],
)
def test_malformed_approval_link(entry):
    with pytest.raises(ConfigurationError):
        ApprovalLink.from_config(entry)


def test_issued_approvals_are_recorded_as_approved(factory, addresses):
    (record,) = issue_approvals(
        [ApprovalLink("Registry", "Factory")], resolve=addresses.__getitem__, factory=factory
    )
    assert record == ApprovalRecord(
        link=ApprovalLink("Registry", "Factory"),
        registry_address=addresses["Registry"],
        grantee_address=addresses["Factory"],
        state=ApprovalState.APPROVED,
    )
    assert ApprovalRecord(record.link, *record[1:3]).state == ApprovalState.UNKNOWN
