"""Tests for the edge -> compute -> database firewall chain."""

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from webfleet.config.models import WebfleetConfig
from webfleet.topology.graph import Declaration, TopologyError
from webfleet.topology.security_groups import (
    INGRESS_RULE_TYPE,
    OPEN_CIDR,
    check_firewall_chain,
    firewall_chain_violations,
    ingress_rules_for,
)
from webfleet.topology.stack import Topology
from webfleet.verify.firewall import audit_firewall_chain, permission_violations
from webfleet.verify.session import VerificationError


def test_declared_chain_is_sealed(config: WebfleetConfig, topology: Topology) -> None:
    """Only the edge tier is reachable from the internet."""
    assert firewall_chain_violations(topology.graph, topology.tiers, config) == []

    edge_rules = ingress_rules_for(topology.graph, topology.tiers.edge)
    assert [rule.attributes.get("cidr_ipv4") for rule in edge_rules] == [OPEN_CIDR]

    compute_rules = ingress_rules_for(topology.graph, topology.tiers.compute)
    assert [rule.attributes["referenced_security_group_id"] for rule in compute_rules] == [
        "${aws_security_group.edge.id}"
    ]
    database_rules = ingress_rules_for(topology.graph, topology.tiers.database)
    ports = [(rule.attributes["from_port"], rule.attributes["to_port"]) for rule in database_rules]
    assert ports == [(3306, 3306)]


def test_internet_rule_on_compute_is_rejected(config: WebfleetConfig, topology: Topology) -> None:
    """An extra CIDR rule on the compute tier breaks the chain."""
    topology.graph.add(
        Declaration(
            INGRESS_RULE_TYPE,
            "compute_ssh",
            {
                "security_group_id": topology.tiers.compute.ref("id"),
                "ip_protocol": "tcp",
                "from_port": 22,
                "to_port": 22,
                "cidr_ipv4": OPEN_CIDR,
            },
        )
    )

    violations = firewall_chain_violations(topology.graph, topology.tiers, config)

    assert violations == [
        f"{INGRESS_RULE_TYPE}.compute_ssh admits compute traffic from {OPEN_CIDR}"
    ]
    with pytest.raises(TopologyError, match="Firewall chain violated"):
        check_firewall_chain(topology.graph, topology.tiers, config)


def test_database_reachable_from_edge_is_rejected(
    config: WebfleetConfig,
    topology: Topology,
) -> None:
    """The database only trusts the compute tier."""
    rule = topology.graph.get(f"{INGRESS_RULE_TYPE}.database_from_compute")
    rule.attributes["referenced_security_group_id"] = topology.tiers.edge.ref("id")

    violations = firewall_chain_violations(topology.graph, topology.tiers, config)

    expected = "admits database traffic from ${aws_security_group.edge.id}"
    assert any(expected in violation for violation in violations)
    assert "aws_security_group.database has no ingress from compute on port 3306" in violations


def test_inline_ingress_is_rejected(config: WebfleetConfig, topology: Topology) -> None:
    """Inline rules would be invisible to the chain check."""
    topology.tiers.database.attributes["ingress"] = [{"cidr_blocks": [OPEN_CIDR]}]

    violations = firewall_chain_violations(topology.graph, topology.tiers, config)

    assert "aws_security_group.database declares inline ingress rules" in violations


def _group(name: str, group_id: str, permissions: list[dict]) -> dict:
    return {"GroupName": name, "GroupId": group_id, "IpPermissions": permissions}


def _pair(group_id: str, port: int) -> dict:
    return {
        "IpProtocol": "tcp",
        "FromPort": port,
        "ToPort": port,
        "UserIdGroupPairs": [{"GroupId": group_id}],
    }


def _session_with_groups(groups: list[dict]) -> MagicMock:
    session = MagicMock()
    session.client.return_value.describe_security_groups.return_value = {"SecurityGroups": groups}
    return session


def test_live_chain_is_sealed(config: WebfleetConfig) -> None:
    """Live groups wired as declared report no violations."""
    session = _session_with_groups(
        [
            _group("wordpress-edge-sg", "sg-edge", [{"IpProtocol": "tcp", "FromPort": 80}]),
            _group("wordpress-compute-sg", "sg-compute", [_pair("sg-edge", 80)]),
            _group("wordpress-database-sg", "sg-db", [_pair("sg-compute", 3306)]),
        ]
    )

    assert audit_firewall_chain(session, config) == []


def test_live_drift_is_reported(config: WebfleetConfig) -> None:
    """A hand-added rule on a private tier shows up in the audit."""
    compute_permissions = [
        _pair("sg-edge", 80),
        {"IpProtocol": "tcp", "FromPort": 22, "ToPort": 22, "IpRanges": [{"CidrIp": OPEN_CIDR}]},
    ]
    session = _session_with_groups(
        [
            _group("wordpress-edge-sg", "sg-edge", []),
            _group("wordpress-compute-sg", "sg-compute", compute_permissions),
            _group("wordpress-database-sg", "sg-db", [_pair("sg-edge", 3306)]),
        ]
    )

    violations = audit_firewall_chain(session, config)

    assert violations == [
        f"compute admits {OPEN_CIDR} on port 22",
        "database admits group sg-edge on port 3306",
        "database has no ingress from sg-compute on port 3306",
    ]


def test_live_audit_requires_every_group(config: WebfleetConfig) -> None:
    """Missing groups cannot be audited."""
    session = _session_with_groups([_group("wordpress-edge-sg", "sg-edge", [])])

    with pytest.raises(VerificationError, match="wordpress-compute-sg"):
        audit_firewall_chain(session, config)


def test_live_audit_describe_failure(
    config: WebfleetConfig,
    client_error: Callable[..., ClientError],
) -> None:
    """API failures surface as verification errors."""
    session = MagicMock()
    session.client.return_value.describe_security_groups.side_effect = client_error(
        "UnauthorizedOperation"
    )

    with pytest.raises(VerificationError, match="Failed to describe security groups"):
        audit_firewall_chain(session, config)


def test_all_traffic_rule_covers_port() -> None:
    """Protocol -1 from the trusted group covers every port."""
    permissions = [{"IpProtocol": "-1", "UserIdGroupPairs": [{"GroupId": "sg-edge"}]}]

    assert permission_violations("compute", permissions, "sg-edge", 80) == []
