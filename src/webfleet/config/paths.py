"""Shared filesystem paths for user configuration."""

from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

APP_NAME = "webfleet"
CONFIG_FILENAME = "config.json"
ENV_FILENAME = ".env"
WORK_DIRNAME = "terraform"


def config_dir() -> Path:
    """Return the user configuration directory.

    Returns:
        The user configuration directory path.
    """
    return Path(user_config_dir(APP_NAME))


def config_path() -> Path:
    """Return the fleet configuration file path.

    Returns:
        The fleet configuration file path.
    """
    return config_dir() / CONFIG_FILENAME


def env_path() -> Path:
    """Return the user env file path.

    Returns:
        The user env file path.
    """
    return config_dir() / ENV_FILENAME


def default_work_dir() -> Path:
    """Return the directory the rendered engine configuration is written to.

    Returns:
        The engine working directory path.
    """
    return Path(user_data_dir(APP_NAME)) / WORK_DIRNAME
