"""Edge load balancer, its listener and the target group instances join."""

from dataclasses import dataclass

from webfleet.config.models import WebfleetConfig
from webfleet.topology.graph import Declaration, TopologyGraph
from webfleet.topology.names import load_balancer_name, target_group_name
from webfleet.topology.network import NetworkContext
from webfleet.topology.security_groups import FirewallTiers


@dataclass
class LoadBalancer:
    """Application load balancer plus listener and target group."""

    balancer: Declaration
    target_group: Declaration
    listener: Declaration


def declare_load_balancer(
    graph: TopologyGraph,
    config: WebfleetConfig,
    network: NetworkContext,
    tiers: FirewallTiers,
) -> LoadBalancer:
    """Route all edge traffic on the app port to the fleet's target group.

    Target membership is left to the autoscaling group.
    """
    port = config.app.port
    check = config.health_check

    balancer = graph.add(
        Declaration(
            "aws_lb",
            "web",
            {
                "name": load_balancer_name(config),
                "load_balancer_type": "application",
                "internal": False,
                "security_groups": [tiers.edge.ref("id")],
                "subnets": network.subnet_ids,
            },
        )
    )
    target_group = graph.add(
        Declaration(
            "aws_lb_target_group",
            "web",
            {
                "name": target_group_name(config),
                "port": port,
                "protocol": "HTTP",
                "vpc_id": network.vpc_id,
                "health_check": {
                    "protocol": "HTTP",
                    "path": check.path,
                    "matcher": check.matcher,
                    "interval": check.interval,
                    "timeout": check.timeout,
                    "healthy_threshold": check.healthy_threshold,
                    "unhealthy_threshold": check.unhealthy_threshold,
                },
            },
        )
    )
    listener = graph.add(
        Declaration(
            "aws_lb_listener",
            "web",
            {
                "load_balancer_arn": balancer.ref("arn"),
                "port": port,
                "protocol": "HTTP",
                "default_action": [
                    {"type": "forward", "target_group_arn": target_group.ref("arn")}
                ],
            },
        )
    )
    return LoadBalancer(balancer=balancer, target_group=target_group, listener=listener)
