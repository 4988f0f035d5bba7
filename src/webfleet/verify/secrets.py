"""Secrets Manager checks for the database credential record."""

import json
from typing import Any, cast

from boto3.session import Session
from botocore.exceptions import ClientError

from webfleet.bootstrap.script import SECRET_KEYS
from webfleet.config.models import WebfleetConfig
from webfleet.verify.session import VerificationError, error_code


def read_secret_payload(session: Session, secret_id: str) -> dict[str, str]:
    """Read the current secret version the way an instance does at boot."""
    client = session.client("secretsmanager")
    try:
        response = client.get_secret_value(SecretId=secret_id)
    except ClientError as exc:
        if error_code(exc) == "ResourceNotFoundException":
            raise VerificationError(f"Secret {secret_id} does not exist") from exc
        raise VerificationError(f"Failed to read secret {secret_id}: {exc}") from exc

    raw = cast(str | None, response.get("SecretString"))
    if raw is None:
        raise VerificationError(f"Secret {secret_id} has no string value")
    try:
        payload: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise VerificationError(f"Secret {secret_id} is not a JSON object") from exc
    if not isinstance(payload, dict):
        raise VerificationError(f"Secret {secret_id} is not a JSON object")

    missing = [key for key in SECRET_KEYS if not payload.get(key)]
    if missing:
        raise VerificationError(f"Secret {secret_id} is missing {', '.join(missing)}")
    return {key: str(payload[key]) for key in SECRET_KEYS}


def audit_secret(session: Session, config: WebfleetConfig) -> list[str]:
    """Return problems with the stored credentials; the password is never echoed."""
    payload = read_secret_payload(session, config.secret_name)
    problems = [
        f"DB_PASSWORD {problem}" for problem in config.password.violations(payload["DB_PASSWORD"])
    ]
    if payload["DB_USER"] != config.database.username:
        problems.append(f"DB_USER is {payload['DB_USER']}, expected {config.database.username}")
    if payload["DB_NAME"] != config.database.db_name:
        problems.append(f"DB_NAME is {payload['DB_NAME']}, expected {config.database.db_name}")
    return problems
