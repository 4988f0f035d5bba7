"""Tests for the assembled fleet topology."""

import logging

import pytest

from webfleet.config.models import AwsConfig, BootstrapConfig, WebfleetConfig
from webfleet.topology.compute import user_data_expression
from webfleet.topology.stack import LB_DNS_OUTPUT, Topology, build_topology

ASG = "aws_autoscaling_group.web"
SECRET_VERSION = "aws_secretsmanager_secret_version.database"


def test_expected_declarations_present(topology: Topology) -> None:
    """Every tier of the fleet is declared."""
    addresses = {declaration.address for declaration in topology.graph}

    assert {
        "data.aws_vpc.default",
        "data.aws_subnets.default",
        "data.aws_ami.app",
        "aws_security_group.edge",
        "aws_security_group.compute",
        "aws_security_group.database",
        "random_password.database",
        "aws_db_instance.database",
        "aws_secretsmanager_secret.database",
        SECRET_VERSION,
        "aws_iam_role.instance",
        "aws_iam_instance_profile.instance",
        "aws_lb.web",
        "aws_lb_target_group.web",
        "aws_lb_listener.web",
        "aws_launch_template.web",
        ASG,
    } <= addresses


def test_autoscaling_group_waits_for_secret_value(topology: Topology) -> None:
    """Instances are only launched after the secret has a value."""
    graph = topology.graph

    assert (ASG, SECRET_VERSION) in graph.explicit_edges()
    assert graph.layer_index(ASG) > graph.layer_index(SECRET_VERSION)


def test_without_explicit_edge_instances_could_race_the_secret(topology: Topology) -> None:
    """No attribute reference orders the group after the secret version."""
    graph = topology.graph
    topology.fleet.autoscaling_group.depends_on.clear()

    assert SECRET_VERSION not in graph.dependencies(topology.fleet.autoscaling_group)
    assert graph.layer_index(ASG) <= graph.layer_index(SECRET_VERSION)


def test_secret_version_follows_database(topology: Topology) -> None:
    """The secret payload reads the database endpoint and the password."""
    dependencies = topology.graph.dependencies(topology.secret.version)

    assert {
        "aws_db_instance.database",
        "random_password.database",
        "aws_secretsmanager_secret.database",
    } <= dependencies


def test_secret_payload_holds_connection_details(topology: Topology) -> None:
    """The secret string encodes the four connection keys."""
    secret_string = topology.secret.version.attributes["secret_string"]

    assert secret_string.startswith("${jsonencode({")
    for key, source in (
        ("DB_HOST", "aws_db_instance.database.address"),
        ("DB_USER", "aws_db_instance.database.username"),
        ("DB_PASSWORD", "random_password.database.result"),
        ("DB_NAME", "aws_db_instance.database.db_name"),
    ):
        assert f"{key} = {source}" in secret_string


def test_user_data_carries_only_the_secret_identifier(topology: Topology) -> None:
    """The launch template passes the ARN, never the password."""
    user_data = topology.fleet.launch_template.attributes["user_data"]

    assert user_data == user_data_expression(topology.secret)
    assert "aws_secretsmanager_secret.database.arn" in user_data
    assert "random_password" not in user_data
    assert "bootstrap.sh.tpl" in user_data


def test_database_is_private_and_uses_generated_password(topology: Topology) -> None:
    """The database is not public and reads its password from the generator."""
    attributes = topology.database.attributes

    assert attributes["publicly_accessible"] is False
    assert attributes["password"] == "${random_password.database.result}"
    assert attributes["vpc_security_group_ids"] == ["${aws_security_group.database.id}"]


def test_autoscaling_group_joins_target_group(config: WebfleetConfig, topology: Topology) -> None:
    """The group registers instances with the target group using ELB health."""
    attributes = topology.fleet.autoscaling_group.attributes

    assert attributes["target_group_arns"] == ["${aws_lb_target_group.web.arn}"]
    assert attributes["health_check_type"] == "ELB"
    assert attributes["min_size"] == config.fleet.min_size
    assert attributes["max_size"] == config.fleet.max_size
    assert attributes["launch_template"]["version"] == "${aws_launch_template.web.latest_version}"


def test_load_balancer_output_declared(topology: Topology) -> None:
    """The load balancer DNS name is exposed after apply."""
    outputs = {output.name: output.value for output in topology.graph.outputs}

    assert outputs == {LB_DNS_OUTPUT: "${aws_lb.web.dns_name}"}


def test_project_name_prefixes_resource_names() -> None:
    """Provider-visible names follow the project name."""
    topology = build_topology(WebfleetConfig(project_name="blog"))

    assert topology.load_balancer.balancer.attributes["name"] == "blog-alb"
    assert topology.tiers.compute.attributes["name"] == "blog-compute-sg"
    assert topology.secret.secret.attributes["name"] == "blog/db-credentials"


def test_region_mismatch_is_reported(caplog: pytest.LogCaptureFixture) -> None:
    """A bootstrap region that differs from the topology region logs a warning."""
    config = WebfleetConfig(
        aws=AwsConfig(region="eu-west-1"),
        bootstrap=BootstrapConfig(region="ap-south-1"),
    )

    with caplog.at_level(logging.WARNING, logger="webfleet.topology.stack"):
        build_topology(config)

    assert "differs from topology region eu-west-1" in caplog.text


def test_matching_regions_are_quiet(
    caplog: pytest.LogCaptureFixture,
    config: WebfleetConfig,
) -> None:
    """No warning is logged when both regions agree."""
    with caplog.at_level(logging.WARNING, logger="webfleet.topology.stack"):
        build_topology(config)

    assert caplog.text == ""
