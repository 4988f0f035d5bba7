"""Configuration models, persistence and runtime settings."""

from webfleet.config.models import (
    AppConfig,
    AwsConfig,
    BootstrapConfig,
    DatabaseConfig,
    FleetConfig,
    HealthCheckConfig,
    PasswordPolicy,
    SecretConfig,
    TerraformConfig,
    WebfleetConfig,
)
from webfleet.config.settings import RuntimeSettings, get_settings
from webfleet.config.store import ConfigError, load_config, save_config

__all__ = [
    "AppConfig",
    "AwsConfig",
    "BootstrapConfig",
    "ConfigError",
    "DatabaseConfig",
    "FleetConfig",
    "HealthCheckConfig",
    "PasswordPolicy",
    "RuntimeSettings",
    "SecretConfig",
    "TerraformConfig",
    "WebfleetConfig",
    "get_settings",
    "load_config",
    "save_config",
]
