"""Instance bootstrap script."""

from webfleet.bootstrap.script import (
    BOOTSTRAP_TEMPLATE_FILENAME,
    SECRET_ARN_VARIABLE,
    SECRET_KEYS,
    BootstrapState,
    docker_run_command,
    render_bootstrap_template,
    substitute_secret_arn,
)

__all__ = [
    "BOOTSTRAP_TEMPLATE_FILENAME",
    "SECRET_ARN_VARIABLE",
    "SECRET_KEYS",
    "BootstrapState",
    "docker_run_command",
    "render_bootstrap_template",
    "substitute_secret_arn",
]
