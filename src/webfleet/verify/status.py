"""Deployment status checks for the fleet."""

from boto3.session import Session
from botocore.exceptions import ClientError

from webfleet.config.models import WebfleetConfig
from webfleet.topology.names import (
    autoscaling_group_name,
    database_identifier,
    launch_template_name,
    load_balancer_name,
    role_name,
    security_group_name,
    target_group_name,
)
from webfleet.topology.security_groups import COMPUTE, DATABASE, EDGE
from webfleet.verify.session import error_code

STATUS_KEY_VPC = "Default VPC"
STATUS_KEY_SECURITY_GROUPS = "Security groups"
STATUS_KEY_IAM_ROLE = "IAM role"
STATUS_KEY_SECRET = "Secret"
STATUS_KEY_DATABASE = "Database"
STATUS_KEY_LOAD_BALANCER = "Load balancer"
STATUS_KEY_TARGET_GROUP = "Target group"
STATUS_KEY_LAUNCH_TEMPLATE = "Launch template"
STATUS_KEY_AUTOSCALING_GROUP = "Autoscaling group"

_LAUNCH_TEMPLATE_NOT_FOUND = {
    "InvalidLaunchTemplateName.NotFoundException",
    "InvalidLaunchTemplateId.NotFound",
}


def check_deployment(session: Session, config: WebfleetConfig) -> dict[str, str]:
    """Check whether the fleet's resources exist and are usable."""
    results: dict[str, str] = {}

    results[STATUS_KEY_VPC] = _check_default_vpc(session)
    results[STATUS_KEY_SECURITY_GROUPS] = _check_security_groups(
        session,
        [security_group_name(config, tier) for tier in (EDGE, COMPUTE, DATABASE)],
    )
    results[STATUS_KEY_IAM_ROLE] = _check_role(session, role_name(config))
    results[STATUS_KEY_SECRET] = _check_secret(session, config.secret_name)
    results[STATUS_KEY_DATABASE] = _check_database(session, database_identifier(config))
    results[STATUS_KEY_LOAD_BALANCER] = _check_load_balancer(session, load_balancer_name(config))
    results[STATUS_KEY_TARGET_GROUP] = _check_target_group(session, target_group_name(config))
    results[STATUS_KEY_LAUNCH_TEMPLATE] = _check_launch_template(
        session, launch_template_name(config)
    )
    results[STATUS_KEY_AUTOSCALING_GROUP] = _check_autoscaling_group(
        session, autoscaling_group_name(config)
    )

    return results


def resource_targets(config: WebfleetConfig) -> dict[str, str]:
    """Return the provider-visible name checked for each status key."""
    groups = ", ".join(security_group_name(config, tier) for tier in (EDGE, COMPUTE, DATABASE))
    return {
        STATUS_KEY_VPC: "is-default",
        STATUS_KEY_SECURITY_GROUPS: groups,
        STATUS_KEY_IAM_ROLE: role_name(config),
        STATUS_KEY_SECRET: config.secret_name,
        STATUS_KEY_DATABASE: database_identifier(config),
        STATUS_KEY_LOAD_BALANCER: load_balancer_name(config),
        STATUS_KEY_TARGET_GROUP: target_group_name(config),
        STATUS_KEY_LAUNCH_TEMPLATE: launch_template_name(config),
        STATUS_KEY_AUTOSCALING_GROUP: autoscaling_group_name(config),
    }


def is_status_present(status: str) -> bool:
    """Return true when a resource status is healthy/present."""
    return status.startswith("present")


def _check_default_vpc(session: Session) -> str:
    ec2 = session.client("ec2")
    try:
        response = ec2.describe_vpcs(Filters=[{"Name": "is-default", "Values": ["true"]}])
    except ClientError as exc:
        return f"error: {error_code(exc)}"
    vpcs = response.get("Vpcs", [])
    if not vpcs:
        return "missing"
    state = str(vpcs[0].get("State", "")).lower()
    if state and state != "available":
        return f"status {state}"
    return "present"


def _check_security_groups(session: Session, names: list[str]) -> str:
    ec2 = session.client("ec2")
    try:
        response = ec2.describe_security_groups(
            Filters=[{"Name": "group-name", "Values": names}]
        )
    except ClientError as exc:
        return f"error: {error_code(exc)}"
    found = {group.get("GroupName") for group in response.get("SecurityGroups", [])}
    missing = len([name for name in names if name not in found])
    if missing == 0:
        return "present"
    return f"missing {missing}/{len(names)}"


def _check_role(session: Session, name: str) -> str:
    iam = session.client("iam")
    try:
        iam.get_role(RoleName=name)
    except ClientError as exc:
        code = error_code(exc)
        if code == "NoSuchEntity":
            return "missing"
        return f"error: {code}"
    return "present"


def _check_secret(session: Session, name: str) -> str:
    client = session.client("secretsmanager")
    try:
        response = client.describe_secret(SecretId=name)
    except ClientError as exc:
        code = error_code(exc)
        if code == "ResourceNotFoundException":
            return "missing"
        return f"error: {code}"
    if response.get("DeletedDate") is not None:
        return "status scheduled deletion"
    return "present"


def _check_database(session: Session, identifier: str) -> str:
    rds = session.client("rds")
    try:
        response = rds.describe_db_instances(DBInstanceIdentifier=identifier)
    except ClientError as exc:
        code = error_code(exc)
        if code == "DBInstanceNotFound":
            return "missing"
        return f"error: {code}"
    instances = response.get("DBInstances", [])
    if not instances:
        return "missing"
    status = str(instances[0].get("DBInstanceStatus", "")).lower()
    if status and status != "available":
        return f"status {status}"
    return "present"


def _check_load_balancer(session: Session, name: str) -> str:
    elbv2 = session.client("elbv2")
    try:
        response = elbv2.describe_load_balancers(Names=[name])
    except ClientError as exc:
        code = error_code(exc)
        if code == "LoadBalancerNotFound":
            return "missing"
        return f"error: {code}"
    balancers = response.get("LoadBalancers", [])
    if not balancers:
        return "missing"
    state = str(balancers[0].get("State", {}).get("Code", "")).lower()
    if state and state != "active":
        return f"status {state}"
    return "present"


def _check_target_group(session: Session, name: str) -> str:
    elbv2 = session.client("elbv2")
    try:
        response = elbv2.describe_target_groups(Names=[name])
    except ClientError as exc:
        code = error_code(exc)
        if code == "TargetGroupNotFound":
            return "missing"
        return f"error: {code}"
    groups = response.get("TargetGroups", [])
    if not groups:
        return "missing"

    try:
        health = elbv2.describe_target_health(TargetGroupArn=groups[0]["TargetGroupArn"])
    except ClientError as exc:
        return f"error: {error_code(exc)}"
    descriptions = health.get("TargetHealthDescriptions", [])
    healthy = sum(
        1 for item in descriptions if item.get("TargetHealth", {}).get("State") == "healthy"
    )
    return f"present, {healthy}/{len(descriptions)} healthy"


def _check_launch_template(session: Session, name: str) -> str:
    ec2 = session.client("ec2")
    try:
        response = ec2.describe_launch_templates(LaunchTemplateNames=[name])
    except ClientError as exc:
        code = error_code(exc)
        if code in _LAUNCH_TEMPLATE_NOT_FOUND:
            return "missing"
        return f"error: {code}"
    templates = response.get("LaunchTemplates", [])
    if not templates:
        return "missing"
    return f"present, version {templates[0].get('LatestVersionNumber')}"


def _check_autoscaling_group(session: Session, name: str) -> str:
    autoscaling = session.client("autoscaling")
    try:
        response = autoscaling.describe_auto_scaling_groups(AutoScalingGroupNames=[name])
    except ClientError as exc:
        return f"error: {error_code(exc)}"
    groups = response.get("AutoScalingGroups", [])
    if not groups:
        return "missing"
    group = groups[0]
    in_service = sum(
        1
        for instance in group.get("Instances", [])
        if instance.get("LifecycleState") == "InService"
    )
    return f"present, {in_service}/{group.get('DesiredCapacity', 0)} in service"
