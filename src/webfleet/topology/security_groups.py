"""Firewall tiers and the trust chain between them."""

from dataclasses import dataclass
from typing import Any

from webfleet.config.models import WebfleetConfig
from webfleet.topology.graph import Declaration, TopologyError, TopologyGraph
from webfleet.topology.names import security_group_name
from webfleet.topology.network import NetworkContext

EDGE = "edge"
COMPUTE = "compute"
DATABASE = "database"

OPEN_CIDR = "0.0.0.0/0"
INGRESS_RULE_TYPE = "aws_vpc_security_group_ingress_rule"
EGRESS_RULE_TYPE = "aws_vpc_security_group_egress_rule"

_SOURCE_KEYS = ("cidr_ipv4", "cidr_ipv6", "prefix_list_id", "referenced_security_group_id")


@dataclass
class FirewallTiers:
    """Security groups for the edge, compute and database tiers."""

    edge: Declaration
    compute: Declaration
    database: Declaration


def declare_firewalls(
    graph: TopologyGraph,
    config: WebfleetConfig,
    network: NetworkContext,
) -> FirewallTiers:
    """Declare one security group per tier and chain their ingress rules."""
    tiers = FirewallTiers(
        edge=_security_group(graph, config, network, EDGE, "Internet-facing load balancer"),
        compute=_security_group(graph, config, network, COMPUTE, "Application instances"),
        database=_security_group(graph, config, network, DATABASE, "Managed database"),
    )

    app_port = config.app.port
    _ingress_rule(graph, tiers.edge, "internet", app_port, {"cidr_ipv4": OPEN_CIDR})
    _ingress_rule(
        graph,
        tiers.compute,
        EDGE,
        app_port,
        {"referenced_security_group_id": tiers.edge.ref("id")},
    )
    _ingress_rule(
        graph,
        tiers.database,
        COMPUTE,
        config.database.port,
        {"referenced_security_group_id": tiers.compute.ref("id")},
    )

    for group in (tiers.edge, tiers.compute, tiers.database):
        graph.add(
            Declaration(
                EGRESS_RULE_TYPE,
                f"{group.name}_all",
                {
                    "security_group_id": group.ref("id"),
                    "ip_protocol": "-1",
                    "cidr_ipv4": OPEN_CIDR,
                },
            )
        )
    return tiers


def firewall_chain_violations(
    graph: TopologyGraph,
    tiers: FirewallTiers,
    config: WebfleetConfig,
) -> list[str]:
    """Return every way the declared rules break the edge → compute → database chain."""
    violations: list[str] = []
    chain = (
        (tiers.compute, tiers.edge, config.app.port),
        (tiers.database, tiers.compute, config.database.port),
    )
    for group, trusted, port in chain:
        if "ingress" in group.attributes:
            violations.append(f"{group.address} declares inline ingress rules")

        rules = ingress_rules_for(graph, group)
        admits_trusted = False
        for rule in rules:
            sources = {key: rule.attributes[key] for key in _SOURCE_KEYS if key in rule.attributes}
            if sources != {"referenced_security_group_id": trusted.ref("id")}:
                violations.append(
                    f"{rule.address} admits {group.name} traffic from {_describe(sources)}"
                )
                continue
            if _covers_port(rule.attributes, port):
                admits_trusted = True

        if not admits_trusted:
            violations.append(f"{group.address} has no ingress from {trusted.name} on port {port}")
    return violations


def check_firewall_chain(
    graph: TopologyGraph,
    tiers: FirewallTiers,
    config: WebfleetConfig,
) -> None:
    """Raise when the firewall trust chain is broken."""
    violations = firewall_chain_violations(graph, tiers, config)
    if violations:
        raise TopologyError("Firewall chain violated: " + "; ".join(violations))


def ingress_rules_for(graph: TopologyGraph, group: Declaration) -> list[Declaration]:
    """Return the standalone ingress rules attached to a security group."""
    group_id = group.ref("id")
    return [
        declaration
        for declaration in graph
        if declaration.type == INGRESS_RULE_TYPE
        and declaration.attributes.get("security_group_id") == group_id
    ]


def _security_group(
    graph: TopologyGraph,
    config: WebfleetConfig,
    network: NetworkContext,
    tier: str,
    description: str,
) -> Declaration:
    name = security_group_name(config, tier)
    return graph.add(
        Declaration(
            "aws_security_group",
            tier,
            {
                "name": name,
                "description": description,
                "vpc_id": network.vpc_id,
                "tags": {"Name": name},
            },
        )
    )


def _ingress_rule(
    graph: TopologyGraph,
    group: Declaration,
    source_name: str,
    port: int,
    source: dict[str, str],
) -> Declaration:
    return graph.add(
        Declaration(
            INGRESS_RULE_TYPE,
            f"{group.name}_from_{source_name}",
            {
                "security_group_id": group.ref("id"),
                "ip_protocol": "tcp",
                "from_port": port,
                "to_port": port,
                "description": f"{group.name} from {source_name}",
                **source,
            },
        )
    )


def _covers_port(attributes: dict[str, Any], port: int) -> bool:
    if attributes.get("ip_protocol") == "-1":
        return True
    return int(attributes.get("from_port", -1)) <= port <= int(attributes.get("to_port", -1))


def _describe(sources: dict[str, Any]) -> str:
    if not sources:
        return "an unspecified source"
    return ", ".join(str(value) for value in sources.values())
