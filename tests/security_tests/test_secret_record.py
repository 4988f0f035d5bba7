"""Tests for the database credential record."""

import json
from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from webfleet.config.models import WebfleetConfig
from webfleet.topology.render import render_files
from webfleet.topology.stack import Topology
from webfleet.verify.secrets import audit_secret, read_secret_payload
from webfleet.verify.session import VerificationError

PASSWORD = "Xy7-kq_P2.vL+m=9"


def _session(secret_string: str | None) -> MagicMock:
    session = MagicMock()
    response = {} if secret_string is None else {"SecretString": secret_string}
    session.client.return_value.get_secret_value.return_value = response
    return session


def _payload(**overrides: str) -> str:
    payload = {
        "DB_HOST": "wordpress-db.abc.ap-south-1.rds.amazonaws.com",
        "DB_USER": "admin",
        "DB_PASSWORD": PASSWORD,
        "DB_NAME": "wordpress",
    }
    payload.update(overrides)
    return json.dumps(payload)


def test_rendered_files_never_contain_password_values(
    config: WebfleetConfig,
    topology: Topology,
) -> None:
    """The password only ever appears as a reference to the generator."""
    files = render_files(topology.graph, config)
    template = files["bootstrap.sh.tpl"]

    assert "random_password" not in template
    assert "DB_PASSWORD=$(jq -er .DB_PASSWORD" in template
    document = json.loads(files["main.tf.json"])
    generator = document["resource"]["random_password"]["database"]
    assert generator["override_special"] == config.password.override_special


def test_read_secret_payload() -> None:
    """A complete payload is returned as strings."""
    payload = read_secret_payload(_session(_payload()), "wordpress/db-credentials")

    assert payload["DB_USER"] == "admin"
    assert payload["DB_PASSWORD"] == PASSWORD


@pytest.mark.parametrize(
    ("secret_string", "message"),
    [
        (None, "has no string value"),
        ("not json", "is not a JSON object"),
        ("[1]", "is not a JSON object"),
        (json.dumps({"DB_HOST": "h", "DB_USER": "u"}), "missing DB_PASSWORD, DB_NAME"),
    ],
)
def test_read_secret_payload_rejects_incomplete_records(
    secret_string: str | None,
    message: str,
) -> None:
    """Records an instance could not boot from are rejected."""
    with pytest.raises(VerificationError, match=message):
        read_secret_payload(_session(secret_string), "wordpress/db-credentials")


def test_missing_secret(client_error: Callable[..., ClientError]) -> None:
    """A missing secret is reported by name."""
    session = MagicMock()
    session.client.return_value.get_secret_value.side_effect = client_error(
        "ResourceNotFoundException"
    )

    with pytest.raises(VerificationError, match="wordpress/db-credentials does not exist"):
        read_secret_payload(session, "wordpress/db-credentials")


def test_audit_secret_accepts_matching_record(config: WebfleetConfig) -> None:
    """A record matching the configuration and policy has no problems."""
    assert audit_secret(_session(_payload()), config) == []


def test_audit_secret_reports_without_echoing_password(config: WebfleetConfig) -> None:
    """Problems describe the password without revealing it."""
    weak = "abc$'"
    session = _session(_payload(DB_PASSWORD=weak, DB_USER="root"))

    problems = audit_secret(session, config)

    assert problems == [
        "DB_PASSWORD length 5 is below 16",
        "DB_PASSWORD 2 character(s) outside the allowed set",
        "DB_USER is root, expected admin",
    ]
    assert all(weak not in problem for problem in problems)
