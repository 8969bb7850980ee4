"""YAML configuration loader for application settings."""

import os
from pathlib import Path
from typing import Any

import yaml

from simple_bundler.models.pydantic_models import AppSettings

# Environment variables that override values from the settings file
ENV_OVERRIDES = {
    "SIMPLE_BUNDLER_SHOP_DOMAIN": "shop_domain",
    "SIMPLE_BUNDLER_API_VERSION": "api_version",
    "SIMPLE_BUNDLER_ACCESS_TOKEN": "access_token",
    "SIMPLE_BUNDLER_WEBHOOK_SECRET": "webhook_secret",
}


def _get_default_config_path() -> Path:
    """Get the default config path relative to project root."""
    return Path(__file__).parent.parent.parent / "config" / "settings.yaml"


def _load_raw_config(path: Path | None = None) -> dict[str, Any]:
    """Load raw YAML config from path.

    Args:
        path: Path to YAML config file. If None, uses default config/settings.yaml.

    Returns:
        Raw config dictionary, empty if the file is missing or empty.

    Raises:
        yaml.YAMLError: If YAML parsing fails.
    """
    if path is None:
        path = _get_default_config_path()

    if not path.exists():
        return {}

    with open(path, "r") as f:
        raw_config: dict[str, Any] | None = yaml.safe_load(f)

    return raw_config if raw_config is not None else {}


def load_settings(path: Path | None = None) -> AppSettings:
    """Load and validate application settings.

    Values come from the YAML file's ``shopify`` section; environment
    variables take precedence over the file.

    Args:
        path: Path to YAML config file. If None, uses default config/settings.yaml.

    Returns:
        Validated AppSettings instance.

    Raises:
        yaml.YAMLError: If YAML parsing fails.
        ValidationError: If config doesn't match expected schema.
    """
    raw_config = _load_raw_config(path)
    values: dict[str, Any] = dict(raw_config.get("shopify") or {})

    for env_var, field_name in ENV_OVERRIDES.items():
        if env_value := os.environ.get(env_var):
            values[field_name] = env_value

    return AppSettings(**values)
