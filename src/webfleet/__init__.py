"""Webfleet - declare, render and verify a load-balanced container fleet on AWS."""

from webfleet.config import WebfleetConfig, load_config
from webfleet.topology import Topology, TopologyError, build_topology, write_configuration

__all__ = [
    "Topology",
    "TopologyError",
    "WebfleetConfig",
    "build_topology",
    "load_config",
    "write_configuration",
]
