"""Runtime settings for the webfleet CLI."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from webfleet.config.paths import config_path, default_work_dir, env_path

ENV_FILE_PATH = str(env_path())


class RuntimeSettings(BaseSettings):
    """Process-level settings read from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="WEBFLEET_",
        env_file=ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    config_path: Path = Field(default_factory=config_path, description="Fleet config JSON file")
    work_dir: Path = Field(
        default_factory=default_work_dir,
        description="Directory the engine configuration is rendered into",
    )
    terraform_bin: str = Field(default="terraform", description="Provisioning engine binary")
    log_level: str = Field(default="WARNING", description="Root logging level")


def get_settings() -> RuntimeSettings:
    """Load and return the runtime settings."""
    return RuntimeSettings()
