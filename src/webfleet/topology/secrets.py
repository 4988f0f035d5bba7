"""Generated credentials and the secret record instances read at boot."""

from dataclasses import dataclass

from webfleet.bootstrap.script import SECRET_KEYS
from webfleet.config.models import WebfleetConfig
from webfleet.topology.graph import Declaration, TopologyGraph


@dataclass
class SecretRecord:
    """The secret container and the version holding its current value."""

    secret: Declaration
    version: Declaration

    @property
    def arn(self) -> str:
        return self.secret.ref("arn")


def declare_password(graph: TopologyGraph, config: WebfleetConfig) -> Declaration:
    """Declare the database password, generated once on first apply."""
    policy = config.password
    return graph.add(
        Declaration(
            "random_password",
            "database",
            {
                "length": policy.length,
                "upper": policy.upper,
                "lower": policy.lower,
                "numeric": policy.numeric,
                "special": policy.special,
                "override_special": policy.override_special,
            },
        )
    )


def declare_secret_record(
    graph: TopologyGraph,
    config: WebfleetConfig,
    database: Declaration,
    password: Declaration,
) -> SecretRecord:
    """Declare the secret holding the database connection details."""
    secret = graph.add(
        Declaration(
            "aws_secretsmanager_secret",
            "database",
            {
                "name": config.secret_name,
                "description": f"Database credentials for {config.project_name}",
                "recovery_window_in_days": config.secret.recovery_window_in_days,
            },
        )
    )
    payload = dict(
        zip(
            SECRET_KEYS,
            (
                database.expr("address"),
                database.expr("username"),
                password.expr("result"),
                database.expr("db_name"),
            ),
            strict=True,
        )
    )
    version = graph.add(
        Declaration(
            "aws_secretsmanager_secret_version",
            "database",
            {
                "secret_id": secret.ref("id"),
                "secret_string": "${jsonencode(" + _hcl_object(payload) + ")}",
            },
        )
    )
    return SecretRecord(secret=secret, version=version)


def _hcl_object(values: dict[str, str]) -> str:
    """Render an HCL object constructor from bare expressions."""
    body = ", ".join(f"{key} = {value}" for key, value in values.items())
    return "{" + body + "}"
