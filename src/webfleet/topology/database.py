"""Managed database declarations."""

from webfleet.config.models import WebfleetConfig
from webfleet.topology.graph import Declaration, TopologyGraph
from webfleet.topology.names import database_identifier
from webfleet.topology.network import NetworkContext
from webfleet.topology.security_groups import FirewallTiers


def declare_database(
    graph: TopologyGraph,
    config: WebfleetConfig,
    network: NetworkContext,
    tiers: FirewallTiers,
    password: Declaration,
) -> Declaration:
    """Declare the database instance inside the default subnets.

    Credentials come from the generated password and are never rotated
    by webfleet.
    """
    db = config.database
    subnet_group = graph.add(
        Declaration(
            "aws_db_subnet_group",
            "database",
            {
                "name": config.resource_name("db-subnets"),
                "subnet_ids": network.subnet_ids,
            },
        )
    )
    identifier = database_identifier(config)
    return graph.add(
        Declaration(
            "aws_db_instance",
            "database",
            {
                "identifier": identifier,
                "engine": db.engine,
                "engine_version": db.engine_version,
                "instance_class": db.instance_class,
                "allocated_storage": db.allocated_storage,
                "db_name": db.db_name,
                "username": db.username,
                "password": password.ref("result"),
                "port": db.port,
                "db_subnet_group_name": subnet_group.ref("name"),
                "vpc_security_group_ids": [tiers.database.ref("id")],
                "publicly_accessible": False,
                "skip_final_snapshot": db.skip_final_snapshot,
                "tags": {"Name": identifier},
            },
        )
    )
