"""Path resolution for loadout storage locations.

This module provides path resolution based on LOADOUT_HOME environment variable,
following a simple directory structure within that root.

Contract:
- Inputs: Environment variables (LOADOUT_HOME and per-directory overrides)
- Outputs: Resolved Path objects
- Side Effects: Creates directories if they don't exist
"""

import os
from pathlib import Path

PROFILES_DIR_NAME = "Profiles"
SUBSCRIPTIONS_FILE_NAME = "subscriptions.json"
ASSOCIATIONS_FILE_NAME = "associations.json"


def get_home_dir() -> Path:
    """Get LOADOUT_HOME from environment.

    Returns:
        Path to root directory (default: .loadout)
    """
    root = os.environ.get("LOADOUT_HOME", ".loadout")
    return Path(root).resolve()


def _resolve_dir(default: Path, env_var: str) -> Path:
    directory = default

    env_override: str | None = os.environ.get(env_var)
    if env_override is not None:
        directory = Path(env_override).expanduser().resolve()

    directory.mkdir(parents=True, exist_ok=True)
    return directory


def get_config_dir() -> Path:
    """Get configuration directory.

    Returns:
        Path to config directory ($LOADOUT_HOME/config)
    """
    return _resolve_dir(get_home_dir() / "config", "LOADOUT_CONFIG_DIR")


def get_data_dir() -> Path:
    """Get the per-user data directory.

    Holds subscriptions.json, associations.json and the Profiles/ tree.

    Returns:
        Path to data directory ($LOADOUT_HOME/data)

    Environment Variables:
        LOADOUT_DATA_DIR: Override data directory location

    Example:
        >>> data_dir = get_data_dir()
        >>> assert data_dir.name == "data" or "LOADOUT_DATA_DIR" in os.environ
    """
    return _resolve_dir(get_home_dir() / "data", "LOADOUT_DATA_DIR")


def get_builtin_dir() -> Path:
    """Get the built-in template root.

    Returns:
        Path to built-in templates ($LOADOUT_HOME/builtin)
    """
    return _resolve_dir(get_home_dir() / "builtin", "LOADOUT_BUILTIN_DIR")
