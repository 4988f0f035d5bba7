"""Fleet configuration persistence helpers."""

import json
from pathlib import Path

from pydantic import ValidationError

from webfleet.config.models import WebfleetConfig
from webfleet.config.paths import config_path


class ConfigError(RuntimeError):
    """Configuration related errors."""


def load_config(path: Path | None = None) -> WebfleetConfig:
    """Load fleet configuration from disk.

    Args:
        path: Configuration file to read. Defaults to the user config path.

    Returns:
        The loaded configuration object, or defaults when no file exists.
    """
    path = path or config_path()
    if not path.exists():
        return WebfleetConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid configuration file: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration file must contain a JSON object.")

    try:
        return WebfleetConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def save_config(config: WebfleetConfig, path: Path | None = None) -> Path:
    """Save fleet configuration to disk.

    Args:
        config: Configuration object to save.
        path: Destination file. Defaults to the user config path.

    Returns:
        The saved configuration file path.
    """
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.model_dump(mode="json"), indent=2), encoding="utf-8")
    return path
