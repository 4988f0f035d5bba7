"""Live verification of a deployed fleet."""

from webfleet.verify.firewall import audit_firewall_chain, permission_violations
from webfleet.verify.health import (
    find_load_balancer_dns,
    find_target_group_arn,
    probe_endpoint,
    target_health_counts,
    wait_for_healthy,
)
from webfleet.verify.secrets import audit_secret, read_secret_payload
from webfleet.verify.session import VerificationError, create_session, get_identity
from webfleet.verify.status import check_deployment, is_status_present, resource_targets

__all__ = [
    "VerificationError",
    "audit_firewall_chain",
    "audit_secret",
    "check_deployment",
    "create_session",
    "find_load_balancer_dns",
    "find_target_group_arn",
    "get_identity",
    "is_status_present",
    "permission_violations",
    "probe_endpoint",
    "read_secret_payload",
    "resource_targets",
    "target_health_counts",
    "wait_for_healthy",
]
