"""Assemble the full fleet topology."""

import logging
from dataclasses import dataclass

from webfleet.config.models import WebfleetConfig
from webfleet.topology.compute import Fleet, declare_fleet
from webfleet.topology.database import declare_database
from webfleet.topology.graph import Declaration, TopologyGraph
from webfleet.topology.iam import InstanceIdentity, check_identity, declare_instance_identity
from webfleet.topology.load_balancer import LoadBalancer, declare_load_balancer
from webfleet.topology.network import NetworkContext, declare_image, declare_network
from webfleet.topology.secrets import SecretRecord, declare_password, declare_secret_record
from webfleet.topology.security_groups import (
    FirewallTiers,
    check_firewall_chain,
    declare_firewalls,
)

logger = logging.getLogger(__name__)

LB_DNS_OUTPUT = "lb_dns_name"


@dataclass
class Topology:
    """The resource graph plus handles to its notable declarations."""

    graph: TopologyGraph
    network: NetworkContext
    tiers: FirewallTiers
    database: Declaration
    secret: SecretRecord
    identity: InstanceIdentity
    load_balancer: LoadBalancer
    fleet: Fleet


def build_topology(config: WebfleetConfig) -> Topology:
    """Declare every resource and check the graph's safety invariants."""
    graph = TopologyGraph()

    network = declare_network(graph)
    image = declare_image(graph, config)
    tiers = declare_firewalls(graph, config, network)
    password = declare_password(graph, config)
    database = declare_database(graph, config, network, tiers, password)
    secret = declare_secret_record(graph, config, database, password)
    identity = declare_instance_identity(graph, config, secret.arn)
    load_balancer = declare_load_balancer(graph, config, network, tiers)
    fleet = declare_fleet(
        graph,
        config,
        network,
        tiers,
        image,
        identity,
        secret,
        load_balancer,
    )
    graph.add_output(
        LB_DNS_OUTPUT,
        load_balancer.balancer.ref("dns_name"),
        "Public DNS name of the load balancer",
    )

    graph.validate()
    check_firewall_chain(graph, tiers, config)
    check_identity(identity, secret.arn)
    _warn_on_region_mismatch(config)

    logger.info(f"Declared {len(graph)} resources for {config.project_name}")
    return Topology(
        graph=graph,
        network=network,
        tiers=tiers,
        database=database,
        secret=secret,
        identity=identity,
        load_balancer=load_balancer,
        fleet=fleet,
    )


def _warn_on_region_mismatch(config: WebfleetConfig) -> None:
    if config.bootstrap.region != config.aws.region:
        logger.warning(
            f"Bootstrap region {config.bootstrap.region} differs from topology region "
            f"{config.aws.region}; instances will query the secret store in "
            f"{config.bootstrap.region}"
        )
