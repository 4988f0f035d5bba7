"""Network context lookups for the fleet."""

from dataclasses import dataclass

from webfleet.config.models import WebfleetConfig
from webfleet.topology.graph import Declaration, TopologyGraph


@dataclass
class NetworkContext:
    """The existing default VPC and its subnets."""

    vpc: Declaration
    subnets: Declaration

    @property
    def vpc_id(self) -> str:
        return self.vpc.ref("id")

    @property
    def subnet_ids(self) -> str:
        return self.subnets.ref("ids")


def declare_network(graph: TopologyGraph) -> NetworkContext:
    """Look up the default VPC and every subnet inside it.

    Nothing is created here; the engine fails the whole apply if the
    account has no default VPC.
    """
    vpc = graph.add(Declaration("aws_vpc", "default", {"default": True}, kind="data"))
    subnets = graph.add(
        Declaration(
            "aws_subnets",
            "default",
            {"filter": [{"name": "vpc-id", "values": [vpc.ref("id")]}]},
            kind="data",
        )
    )
    return NetworkContext(vpc=vpc, subnets=subnets)


def declare_image(graph: TopologyGraph, config: WebfleetConfig) -> Declaration:
    """Look up the most recent machine image matching the configured filter."""
    return graph.add(
        Declaration(
            "aws_ami",
            "app",
            {
                "most_recent": True,
                "owners": [config.fleet.ami_owner],
                "filter": [
                    {"name": "name", "values": [config.fleet.ami_name_filter]},
                    {"name": "architecture", "values": ["x86_64"]},
                ],
            },
            kind="data",
        )
    )
