"""Configuration for toggl-timer.

Settings live in a YAML file, are merged over built-in defaults and are
checked against a JSON schema whenever they are loaded or changed.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml  # type: ignore[import-untyped]
from jsonschema import Draft7Validator  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "TOGGL_API_TOKEN"
DEFAULT_CONFIG_PATH = Path.home() / ".toggl-timer" / "config.yml"

DEFAULTS: dict[str, Any] = {
    "version": "1.0",
    "api": {
        "base_url": "https://api.track.toggl.com/api/v8",
        "token": None,
        "timeout": 30,
        "app_name": "toggl-timer",
    },
    "display": {
        "date_format": "%Y-%m-%d",
        "time_format": "%H:%M:%S",
    },
    "advanced": {
        "log_level": "WARNING",
        "log_file": None,
    },
}

SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["version"],
    "properties": {
        "version": {"type": "string"},
        "api": {
            "type": "object",
            "properties": {
                "base_url": {"type": "string", "pattern": "^https?://"},
                "token": {"type": ["string", "null"]},
                "timeout": {"type": "integer", "minimum": 1, "maximum": 300},
                "app_name": {"type": "string", "minLength": 1},
            },
        },
        "display": {
            "type": "object",
            "properties": {
                "date_format": {"type": "string"},
                "time_format": {"type": "string"},
            },
        },
        "advanced": {
            "type": "object",
            "properties": {
                "log_level": {"enum": ["DEBUG", "INFO", "WARNING", "ERROR"]},
                "log_file": {"type": ["string", "null"]},
            },
        },
    },
}

_validator = Draft7Validator(SCHEMA)


def merged(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a deep copy of ``base`` with ``override`` laid over it."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merged(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def check(settings: dict[str, Any]) -> None:
    """Raise ValueError describing the first schema violation, if any."""
    errors = sorted(_validator.iter_errors(settings), key=lambda e: list(e.path))
    if errors:
        error = errors[0]
        where = ".".join(str(part) for part in error.path) or "(root)"
        raise ValueError(f"Invalid configuration at {where}: {error.message}")


class ConfigManager:
    """Load, query and update the YAML configuration file."""

    def __init__(self, config_path: Optional[Path] = None):
        """Load the config file, writing defaults if it does not exist.

        Raises:
            ValueError: If the existing file fails validation. The file is
                moved aside to ``.yml.backup`` and defaults are written.
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self._settings: dict[str, Any] = copy.deepcopy(DEFAULTS)

        if not self.config_path.exists():
            logger.debug(f"Writing default config to {self.config_path}")
            self.save()
            return

        with open(self.config_path, encoding="utf-8") as f:
            stored = yaml.safe_load(f) or {}

        candidate = merged(DEFAULTS, stored)
        try:
            check(candidate)
        except ValueError as e:
            backup_path = self.config_path.with_suffix(".yml.backup")
            self.config_path.replace(backup_path)
            logger.warning(f"Config at {self.config_path} is invalid, moved to {backup_path}")
            self.save()
            raise ValueError(
                f"Config validation failed, backed up to {backup_path}. "
                f"Using defaults. Error: {e}"
            ) from e

        self._settings = candidate

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as ``api.timeout``.

        Missing keys and null values give ``default``.
        """
        node: Any = self._settings
        for part in key.split("."):
            if not isinstance(node, dict) or node.get(part) is None:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Change a dotted key and save.

        The change is only applied if the result is valid.

        Raises:
            ValueError: If the new configuration is invalid
        """
        *parents, leaf = key.split(".")
        change: dict[str, Any] = {leaf: value}
        for part in reversed(parents):
            change = {part: change}

        candidate = merged(self._settings, change)
        check(candidate)
        self._settings = candidate
        self.save()

    def validate(self) -> bool:
        """Check the current settings.

        Raises:
            ValueError: If the settings are invalid
        """
        check(self._settings)
        return True

    def save(self) -> None:
        """Write the settings to the config file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._settings, f, default_flow_style=False, sort_keys=False)

    def reset(self) -> None:
        """Restore and save the defaults."""
        self._settings = copy.deepcopy(DEFAULTS)
        self.save()

    def to_dict(self) -> dict[str, Any]:
        """Get a copy of all settings."""
        return copy.deepcopy(self._settings)

    def api_token(self) -> Optional[str]:
        """Get the API token. ``TOGGL_API_TOKEN`` wins over the file."""
        return os.environ.get(TOKEN_ENV_VAR) or self.get("api.token")
