"""Emit the topology as engine configuration files."""

import json
import logging
from pathlib import Path
from typing import Any

from terraformpy import Output, Provider, Terraform, TFObject

from webfleet.bootstrap.script import BOOTSTRAP_TEMPLATE_FILENAME, render_bootstrap_template
from webfleet.config.models import WebfleetConfig
from webfleet.topology.graph import TopologyGraph

logger = logging.getLogger(__name__)

CONFIGURATION_FILENAME = "main.tf.json"


def render_configuration(graph: TopologyGraph, config: WebfleetConfig) -> dict[str, Any]:
    """Compile a graph into the engine's JSON configuration document.

    terraformpy collects every object in a process-wide registry, so the
    registry is reset on both sides of the compile. Each call then yields
    exactly this graph's document.
    """
    provider: dict[str, Any] = {
        "region": config.aws.region,
        "default_tags": {"tags": {"Project": config.project_name}},
    }
    if config.aws.profile:
        provider["profile"] = config.aws.profile

    TFObject.reset()
    try:
        Terraform(
            required_providers={
                "aws": {
                    "source": "hashicorp/aws",
                    "version": config.terraform.aws_provider_version,
                },
                "random": {
                    "source": "hashicorp/random",
                    "version": config.terraform.random_provider_version,
                },
            }
        )
        Provider("aws", **provider)
        for declaration in graph:
            declaration.to_object()
        for output in graph.outputs:
            values: dict[str, Any] = {"value": output.value}
            if output.description:
                values["description"] = output.description
            Output(output.name, **values)
        return TFObject.compile()
    finally:
        TFObject.reset()


def render_files(graph: TopologyGraph, config: WebfleetConfig) -> dict[str, str]:
    """Return file names mapped to their rendered contents."""
    document = render_configuration(graph, config)
    return {
        CONFIGURATION_FILENAME: json.dumps(document, indent=2) + "\n",
        BOOTSTRAP_TEMPLATE_FILENAME: render_bootstrap_template(
            config.app,
            config.bootstrap.region,
        ),
    }


def write_configuration(
    graph: TopologyGraph,
    config: WebfleetConfig,
    directory: Path,
) -> list[Path]:
    """Write the engine configuration into a directory.

    Files whose contents are unchanged are left untouched.
    """
    directory.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for filename, content in render_files(graph, config).items():
        path = directory / filename
        if path.exists() and path.read_text(encoding="utf-8") == content:
            logger.debug(f"{path} is up to date")
        else:
            path.write_text(content, encoding="utf-8")
            logger.info(f"Wrote {path}")
        written.append(path)
    return written
