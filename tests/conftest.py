"""Shared fixtures for webfleet tests."""

from collections.abc import Callable

import pytest
from botocore.exceptions import ClientError

from webfleet.config.models import WebfleetConfig
from webfleet.topology.stack import Topology, build_topology


@pytest.fixture
def config() -> WebfleetConfig:
    """Default fleet configuration."""
    return WebfleetConfig()


@pytest.fixture
def topology(config: WebfleetConfig) -> Topology:
    """Topology built from the default configuration."""
    return build_topology(config)


@pytest.fixture
def client_error() -> Callable[..., ClientError]:
    """Build botocore client errors carrying a given code."""

    def _make(code: str, operation: str = "Operation") -> ClientError:
        return ClientError({"Error": {"Code": code, "Message": code}}, operation)

    return _make
