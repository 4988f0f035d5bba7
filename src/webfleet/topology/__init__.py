"""Declarative fleet topology and its engine configuration."""

from webfleet.topology.graph import Declaration, Output, TopologyError, TopologyGraph
from webfleet.topology.render import (
    CONFIGURATION_FILENAME,
    render_configuration,
    render_files,
    write_configuration,
)
from webfleet.topology.stack import LB_DNS_OUTPUT, Topology, build_topology

__all__ = [
    "CONFIGURATION_FILENAME",
    "LB_DNS_OUTPUT",
    "Declaration",
    "Output",
    "Topology",
    "TopologyError",
    "TopologyGraph",
    "build_topology",
    "render_configuration",
    "render_files",
    "write_configuration",
]
