"""Instance bootstrap script rendering."""

import shlex
from enum import StrEnum

from webfleet.config.models import AppConfig

BOOTSTRAP_TEMPLATE_FILENAME = "bootstrap.sh.tpl"
SECRET_ARN_VARIABLE = "db_secret_arn"
SECRET_ARN_PLACEHOLDER = "${" + SECRET_ARN_VARIABLE + "}"
MARKER_PREFIX = "webfleet-bootstrap"

# Keys the secret record holds and the script reads, in launch order.
SECRET_KEYS = ("DB_HOST", "DB_USER", "DB_PASSWORD", "DB_NAME")


class BootstrapState(StrEnum):
    """Progress markers an instance writes to its cloud-init output log."""

    NOT_STARTED = "not-started"
    PACKAGES_INSTALLING = "packages-installing"
    RUNTIME_STARTING = "runtime-starting"
    SECRET_FETCHING = "secret-fetching"
    CONTAINER_LAUNCHING = "container-launching"
    SERVING = "serving"
    FAILED = "failed"


def render_bootstrap_template(app: AppConfig, region: str) -> str:
    """Render the bootstrap script as an engine template.

    The only template variable left in the output is the secret ARN; every
    other value is baked in. Any step failing aborts the script.
    """
    lines = [
        "#!/bin/bash",
        "set -euo pipefail",
        f"trap 'echo \"{MARKER_PREFIX}: {BootstrapState.FAILED}\"' ERR",
        "",
        _marker(BootstrapState.PACKAGES_INSTALLING),
        "yum update -y",
        "yum install -y docker jq",
        "",
        _marker(BootstrapState.RUNTIME_STARTING),
        "systemctl start docker",
        "systemctl enable docker",
        "usermod -aG docker ec2-user",
        "",
        _marker(BootstrapState.SECRET_FETCHING),
        f'DB_SECRET_ARN="{SECRET_ARN_PLACEHOLDER}"',
        "SECRET_JSON=$(aws secretsmanager get-secret-value"
        f' --secret-id "$DB_SECRET_ARN" --region {_literal(region)}'
        " --query SecretString --output text)",
    ]
    lines.extend(f"{key}=$(jq -er .{key} <<<\"$SECRET_JSON\")" for key in SECRET_KEYS)
    lines.extend(
        [
            "",
            _marker(BootstrapState.CONTAINER_LAUNCHING),
            " \\\n  ".join(docker_run_command(app)),
            "",
            _marker(BootstrapState.SERVING),
            "",
        ]
    )
    return "\n".join(lines)


def docker_run_command(app: AppConfig) -> list[str]:
    """Return the single long-lived container launch as shell words."""
    port_mapping = f"{app.port}:{app.port}"
    command = [
        "docker run -d",
        f"--name {_literal(app.container_name)}",
        f"-p {port_mapping}",
    ]
    command.extend(f'-e {app.env_prefix}{key}="${key}"' for key in SECRET_KEYS)
    command.extend(
        f"-e {_literal(f'{name}={value}')}" for name, value in app.debug_environment.items()
    )
    command.append("--restart always")
    command.append(_literal(app.image))
    return command


def substitute_secret_arn(template: str, secret_arn: str) -> str:
    """Render a template the way the engine's templatefile() would."""
    rendered = template.replace(SECRET_ARN_PLACEHOLDER, secret_arn)
    return rendered.replace("$${", "${").replace("%%{", "%{")


def _marker(state: BootstrapState) -> str:
    return f'echo "{MARKER_PREFIX}: {state}"'


def _literal(value: str) -> str:
    """Shell-quote a static value and escape engine template sequences."""
    return shlex.quote(value).replace("${", "$${").replace("%{", "%%{")
