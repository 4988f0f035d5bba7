"""Target health polling and the end-to-end HTTP probe."""

import logging
import time
from collections import Counter
from collections.abc import Callable
from typing import cast

import requests
from boto3.session import Session
from botocore.exceptions import ClientError

from webfleet.config.models import WebfleetConfig
from webfleet.topology.names import load_balancer_name, target_group_name
from webfleet.verify.session import VerificationError

logger = logging.getLogger(__name__)


def find_target_group_arn(session: Session, config: WebfleetConfig) -> str:
    """Return the fleet's target group ARN."""
    name = target_group_name(config)
    elbv2 = session.client("elbv2")
    try:
        response = elbv2.describe_target_groups(Names=[name])
    except ClientError as exc:
        raise VerificationError(f"Failed to read target group {name}: {exc}") from exc
    groups = response.get("TargetGroups", [])
    if not groups:
        raise VerificationError(f"Target group {name} does not exist")
    return cast(str, groups[0]["TargetGroupArn"])


def find_load_balancer_dns(session: Session, config: WebfleetConfig) -> str:
    """Return the public DNS name of the fleet's load balancer."""
    name = load_balancer_name(config)
    elbv2 = session.client("elbv2")
    try:
        response = elbv2.describe_load_balancers(Names=[name])
    except ClientError as exc:
        raise VerificationError(f"Failed to read load balancer {name}: {exc}") from exc
    balancers = response.get("LoadBalancers", [])
    if not balancers:
        raise VerificationError(f"Load balancer {name} does not exist")
    return cast(str, balancers[0]["DNSName"])


def target_health_counts(session: Session, target_group_arn: str) -> dict[str, int]:
    """Count registered targets by health state."""
    elbv2 = session.client("elbv2")
    response = elbv2.describe_target_health(TargetGroupArn=target_group_arn)
    states = Counter(
        str(item.get("TargetHealth", {}).get("State", "unknown"))
        for item in response.get("TargetHealthDescriptions", [])
    )
    return dict(states)


def wait_for_healthy(
    session: Session,
    config: WebfleetConfig,
    reporter: Callable[[str], None],
    timeout_seconds: int = 300,
    poll_interval_seconds: int = 15,
) -> tuple[bool, str]:
    """Wait until the target group holds the desired number of healthy targets."""
    target_group_arn = find_target_group_arn(session, config)
    wanted = max(config.fleet.desired_capacity, 1)
    deadline = time.time() + timeout_seconds

    while time.time() < deadline:
        counts = target_health_counts(session, target_group_arn)
        healthy = counts.get("healthy", 0)
        if healthy >= wanted:
            return True, f"{healthy} healthy target(s) registered."
        summary = ", ".join(f"{state}={count}" for state, count in sorted(counts.items()))
        reporter(f"Waiting for {wanted} healthy target(s): {summary or 'no targets yet'}")
        time.sleep(poll_interval_seconds)

    return False, f"Timed out waiting for healthy targets after {timeout_seconds} seconds."


def probe_endpoint(dns_name: str, path: str, timeout: float = 10.0) -> int:
    """Issue one HTTP GET through the load balancer and return its status code."""
    url = f"http://{dns_name}{path}"
    logger.info(f"Probing {url}")
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise VerificationError(f"Probe of {url} failed: {exc}") from exc
    return response.status_code
