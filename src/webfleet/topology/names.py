"""Provider-visible names shared by the topology and live verification."""

from webfleet.config.models import WebfleetConfig


def security_group_name(config: WebfleetConfig, tier: str) -> str:
    return config.resource_name(f"{tier}-sg")


def database_identifier(config: WebfleetConfig) -> str:
    return config.resource_name("db")


def role_name(config: WebfleetConfig) -> str:
    return config.resource_name("instance-role")


def load_balancer_name(config: WebfleetConfig) -> str:
    return config.resource_name("alb")


def target_group_name(config: WebfleetConfig) -> str:
    return config.resource_name("tg")


def launch_template_name(config: WebfleetConfig) -> str:
    return config.resource_name("lt")


def autoscaling_group_name(config: WebfleetConfig) -> str:
    return config.resource_name("asg")
