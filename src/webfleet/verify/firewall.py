"""Live audit of the edge → compute → database firewall chain."""

import logging
from typing import Any

from boto3.session import Session
from botocore.exceptions import ClientError

from webfleet.config.models import WebfleetConfig
from webfleet.topology.names import security_group_name
from webfleet.topology.security_groups import COMPUTE, DATABASE, EDGE
from webfleet.verify.session import VerificationError

logger = logging.getLogger(__name__)


def audit_firewall_chain(session: Session, config: WebfleetConfig) -> list[str]:
    """Return every live ingress rule that breaks the trust chain."""
    names = {tier: security_group_name(config, tier) for tier in (EDGE, COMPUTE, DATABASE)}
    groups = _describe_groups(session, list(names.values()))

    missing = [name for name in names.values() if name not in groups]
    if missing:
        raise VerificationError(f"Security groups not found: {', '.join(missing)}")

    edge_id = groups[names[EDGE]]["GroupId"]
    compute_id = groups[names[COMPUTE]]["GroupId"]
    logger.info(f"Auditing firewall chain {edge_id} -> {compute_id}")

    violations = permission_violations(
        COMPUTE,
        groups[names[COMPUTE]].get("IpPermissions", []),
        trusted_group_id=edge_id,
        port=config.app.port,
    )
    violations.extend(
        permission_violations(
            DATABASE,
            groups[names[DATABASE]].get("IpPermissions", []),
            trusted_group_id=compute_id,
            port=config.database.port,
        )
    )
    return violations


def permission_violations(
    tier: str,
    permissions: list[dict[str, Any]],
    trusted_group_id: str,
    port: int,
) -> list[str]:
    """Check one tier's ingress permissions against the group it must trust.

    Args:
        tier: Tier label used in messages.
        permissions: ``IpPermissions`` as returned by DescribeSecurityGroups.
        trusted_group_id: The only group allowed to reach this tier.
        port: The port the trusted group must be able to reach.

    Returns:
        Human-readable violations; empty when the tier is sealed correctly.
    """
    violations: list[str] = []
    admits_trusted = False
    for permission in permissions:
        ports = _describe_ports(permission)
        for ip_range in permission.get("IpRanges", []):
            violations.append(f"{tier} admits {ip_range.get('CidrIp')} on {ports}")
        for ip_range in permission.get("Ipv6Ranges", []):
            violations.append(f"{tier} admits {ip_range.get('CidrIpv6')} on {ports}")
        for prefix_list in permission.get("PrefixListIds", []):
            prefix_list_id = prefix_list.get("PrefixListId")
            violations.append(f"{tier} admits prefix list {prefix_list_id} on {ports}")
        for pair in permission.get("UserIdGroupPairs", []):
            if pair.get("GroupId") != trusted_group_id:
                violations.append(f"{tier} admits group {pair.get('GroupId')} on {ports}")
            elif _covers_port(permission, port):
                admits_trusted = True

    if not admits_trusted:
        violations.append(f"{tier} has no ingress from {trusted_group_id} on port {port}")
    return violations


def _describe_groups(session: Session, names: list[str]) -> dict[str, dict[str, Any]]:
    ec2 = session.client("ec2")
    try:
        response = ec2.describe_security_groups(
            Filters=[{"Name": "group-name", "Values": names}]
        )
    except ClientError as exc:
        raise VerificationError(f"Failed to describe security groups: {exc}") from exc
    return {group["GroupName"]: group for group in response.get("SecurityGroups", [])}


def _covers_port(permission: dict[str, Any], port: int) -> bool:
    if permission.get("IpProtocol") == "-1":
        return True
    return int(permission.get("FromPort", -1)) <= port <= int(permission.get("ToPort", -1))


def _describe_ports(permission: dict[str, Any]) -> str:
    if permission.get("IpProtocol") == "-1":
        return "all ports"
    from_port = permission.get("FromPort")
    to_port = permission.get("ToPort")
    if from_port == to_port:
        return f"port {from_port}"
    return f"ports {from_port}-{to_port}"
