"""Configuration loading for loadout.

This module handles loading configuration from YAML files and environment
variables.

Contract:
- Inputs: Config file paths, environment variables
- Outputs: LoadoutSettings objects
- Side Effects: Creates default config file if missing
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..storage.paths import get_config_dir
from .settings import LoadoutSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = """# loadout configuration

# Server settings
host: "127.0.0.1"
port: 8430
log_level: "info"
workers: 1

# Profile that always stays subscribed
default_profile_id: "default"

# Drop association entries of unsubscribed profiles on startup
reconcile_on_start: true

# Storage roots (default: $LOADOUT_HOME/data and $LOADOUT_HOME/builtin)
# Supports: absolute paths, ~ for home directory, relative paths
# data_path: "~/.loadout/data"
# builtin_path: "/opt/loadout/builtin"
"""


def get_config_path() -> Path:
    """Get path to config file.

    Returns:
        Path to loadout.yaml in config directory

    Example:
        >>> config_path = get_config_path()
        >>> assert config_path.name == "loadout.yaml"
    """
    return get_config_dir() / "loadout.yaml"


def create_default_config(config_path: Path | None = None) -> None:
    """Create default config file if it doesn't exist."""
    config_path = config_path or get_config_path()

    if config_path.exists():
        logger.debug(f"Config file already exists: {config_path}")
        return

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(DEFAULT_CONFIG, encoding="utf-8")
        logger.info(f"Created default config: {config_path}")
    except OSError as e:
        logger.warning(f"Could not create default config at {config_path}: {e}")


def load_config(config_path: Path | None = None) -> LoadoutSettings:
    """Load configuration from YAML and environment.

    Environment variables take precedence over YAML settings.
    Variables should be prefixed with LOADOUT_ (e.g., LOADOUT_PORT).

    Args:
        config_path: Optional config file path (default: loadout.yaml in config dir)

    Returns:
        Validated settings

    Example:
        >>> settings = load_config()
        >>> assert isinstance(settings, LoadoutSettings)
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        create_default_config(config_path)

    yaml_settings: dict = {}
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                yaml_settings = loaded
            else:
                logger.warning(f"Ignoring {config_path}: top level must be a mapping")
            logger.debug(f"Loaded config from {config_path}")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")
            logger.info("Using default settings and environment variables")

    # Only pass YAML values that don't have corresponding env vars
    filtered_yaml = {}
    for key, value in yaml_settings.items():
        env_key = f"LOADOUT_{str(key).upper()}"
        if env_key not in os.environ:
            filtered_yaml[key] = value

    try:
        settings = LoadoutSettings(**filtered_yaml)
    except ValidationError as e:
        logger.warning(f"Invalid values in {config_path}, falling back to defaults: {e.error_count()} error(s)")
        settings = LoadoutSettings()

    logger.info(
        f"Configuration loaded: host={settings.host}, port={settings.port}, "
        f"default_profile={settings.default_profile_id}"
    )

    return settings
