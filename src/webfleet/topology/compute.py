"""Launch template and autoscaling group for the application fleet."""

from dataclasses import dataclass

from webfleet.bootstrap.script import BOOTSTRAP_TEMPLATE_FILENAME, SECRET_ARN_VARIABLE
from webfleet.config.models import WebfleetConfig
from webfleet.topology.graph import Declaration, TopologyGraph
from webfleet.topology.iam import InstanceIdentity
from webfleet.topology.load_balancer import LoadBalancer
from webfleet.topology.names import autoscaling_group_name, launch_template_name
from webfleet.topology.network import NetworkContext
from webfleet.topology.secrets import SecretRecord
from webfleet.topology.security_groups import FirewallTiers


@dataclass
class Fleet:
    """Instance template and the group that stamps instances out of it."""

    launch_template: Declaration
    autoscaling_group: Declaration


def user_data_expression(secret: SecretRecord) -> str:
    """Return the engine expression rendering the bootstrap script.

    Only the secret identifier is injected; the value is fetched at boot.
    """
    template_path = '"${path.module}/' + BOOTSTRAP_TEMPLATE_FILENAME + '"'
    variables = "{" + f"{SECRET_ARN_VARIABLE} = {secret.secret.expr('arn')}" + "}"
    return "${base64encode(templatefile(" + template_path + ", " + variables + "))}"


def declare_fleet(
    graph: TopologyGraph,
    config: WebfleetConfig,
    network: NetworkContext,
    tiers: FirewallTiers,
    image: Declaration,
    identity: InstanceIdentity,
    secret: SecretRecord,
    load_balancer: LoadBalancer,
) -> Fleet:
    """Declare the immutable launch template and the autoscaling group."""
    template_name = launch_template_name(config)
    launch_template = graph.add(
        Declaration(
            "aws_launch_template",
            "web",
            {
                "name": template_name,
                "image_id": image.ref("id"),
                "instance_type": config.fleet.instance_type,
                "iam_instance_profile": {"name": identity.profile.ref("name")},
                "vpc_security_group_ids": [tiers.compute.ref("id")],
                "user_data": user_data_expression(secret),
                "update_default_version": True,
                "tag_specifications": [
                    {
                        "resource_type": "instance",
                        "tags": {"Name": config.resource_name("instance")},
                    }
                ],
            },
        )
    )

    fleet = config.fleet
    group_name = autoscaling_group_name(config)
    autoscaling_group = graph.add(
        Declaration(
            "aws_autoscaling_group",
            "web",
            {
                "name": group_name,
                "min_size": fleet.min_size,
                "max_size": fleet.max_size,
                "desired_capacity": fleet.desired_capacity,
                "vpc_zone_identifier": network.subnet_ids,
                "target_group_arns": [load_balancer.target_group.ref("arn")],
                "health_check_type": "ELB",
                "health_check_grace_period": fleet.health_check_grace_period,
                "launch_template": {
                    "id": launch_template.ref("id"),
                    "version": launch_template.ref("latest_version"),
                },
                "tag": [
                    {"key": "Name", "value": group_name, "propagate_at_launch": True},
                ],
            },
            # Instances fetch the secret at boot; launching before it has a
            # value fails every instance at once.
            depends_on=[secret.version.address],
        )
    )
    return Fleet(launch_template=launch_template, autoscaling_group=autoscaling_group)
