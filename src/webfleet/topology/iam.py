"""Instance identity and its least-privilege policy."""

import json
from dataclasses import dataclass
from typing import Any

from webfleet.config.models import WebfleetConfig
from webfleet.topology.graph import Declaration, TopologyError, TopologyGraph
from webfleet.topology.names import role_name

EC2_SERVICE_PRINCIPAL = "ec2.amazonaws.com"
SECRET_READ_ACTION = "secretsmanager:GetSecretValue"
DESCRIBE_TAGS_ACTION = "ec2:DescribeTags"


@dataclass
class InstanceIdentity:
    """Role, inline policy and instance profile attached to every instance."""

    role: Declaration
    policy: Declaration
    profile: Declaration


def declare_instance_identity(
    graph: TopologyGraph,
    config: WebfleetConfig,
    secret_arn: str,
) -> InstanceIdentity:
    """Declare a role that can read one secret and describe its own tags."""
    name = role_name(config)
    role = graph.add(
        Declaration(
            "aws_iam_role",
            "instance",
            {
                "name": name,
                "assume_role_policy": json.dumps(_ec2_trust_policy()),
            },
        )
    )
    policy = graph.add(
        Declaration(
            "aws_iam_role_policy",
            "instance",
            {
                "name": config.resource_name("secret-read"),
                "role": role.ref("id"),
                "policy": json.dumps(_instance_policy(secret_arn)),
            },
        )
    )
    profile = graph.add(
        Declaration(
            "aws_iam_instance_profile",
            "instance",
            {
                "name": config.resource_name("instance-profile"),
                "role": role.ref("name"),
            },
        )
    )
    return InstanceIdentity(role=role, policy=policy, profile=profile)


def identity_violations(identity: InstanceIdentity, secret_arn: str) -> list[str]:
    """Return every grant beyond reading one secret and describing tags."""
    violations: list[str] = []

    trust = json.loads(identity.role.attributes["assume_role_policy"])
    for statement in trust.get("Statement", []):
        principal = statement.get("Principal", {})
        if principal != {"Service": EC2_SERVICE_PRINCIPAL}:
            violations.append(f"role is assumable by {principal}")

    expected = {
        SECRET_READ_ACTION: [secret_arn],
        DESCRIBE_TAGS_ACTION: ["*"],
    }
    granted: dict[str, list[str]] = {}
    document = json.loads(identity.policy.attributes["policy"])
    for statement in document.get("Statement", []):
        if statement.get("Effect") != "Allow":
            continue
        for action in _as_list(statement.get("Action")):
            granted.setdefault(action, []).extend(_as_list(statement.get("Resource")))

    for action, resources in granted.items():
        if action not in expected:
            violations.append(f"policy grants unexpected action {action}")
        elif sorted(resources) != expected[action]:
            violations.append(f"policy grants {action} on {resources}")
    for action in expected:
        if action not in granted:
            violations.append(f"policy is missing {action}")
    return violations


def check_identity(identity: InstanceIdentity, secret_arn: str) -> None:
    """Raise when the instance identity is broader than required."""
    violations = identity_violations(identity, secret_arn)
    if violations:
        raise TopologyError("Instance identity is not least-privilege: " + "; ".join(violations))


def _ec2_trust_policy() -> dict[str, Any]:
    """Return the EC2 instance trust policy."""
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Service": EC2_SERVICE_PRINCIPAL},
                "Action": "sts:AssumeRole",
            }
        ],
    }


def _instance_policy(secret_arn: str) -> dict[str, Any]:
    """Allow reading one secret and describing the instance's tags."""
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Action": [SECRET_READ_ACTION],
                "Resource": [secret_arn],
            },
            {
                # DescribeTags has no resource-level permissions.
                "Effect": "Allow",
                "Action": [DESCRIBE_TAGS_ACTION],
                "Resource": "*",
            },
        ],
    }


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]
