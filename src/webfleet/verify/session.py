"""AWS session helpers."""

import boto3
from botocore.exceptions import ClientError

from webfleet.config.models import AwsConfig


class VerificationError(RuntimeError):
    """A live deployment could not be read or does not match its declaration."""


def create_session(config: AwsConfig) -> boto3.session.Session:
    """Create a boto3 session."""
    if config.profile:
        return boto3.session.Session(
            profile_name=config.profile,
            region_name=config.region,
        )

    return boto3.session.Session(region_name=config.region)


def get_identity(session: boto3.session.Session) -> dict[str, str]:
    """Fetch the current AWS identity."""
    client = session.client("sts")
    try:
        response = client.get_caller_identity()
    except ClientError as exc:
        raise VerificationError(f"Failed to read AWS identity: {exc}") from exc

    return {
        "Account": str(response.get("Account", "")),
        "Arn": str(response.get("Arn", "")),
        "UserId": str(response.get("UserId", "")),
    }


def error_code(exc: ClientError) -> str:
    """Return the service error code carried by a client error."""
    return str(exc.response.get("Error", {}).get("Code", ""))
