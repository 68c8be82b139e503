"""Profile export/import file handling.

An export is a single JSON document holding the profile config, its plugin
references and each plugin's per-profile config.json. Plugin code is never
included; missing plugins are reinstalled through the plugin library.
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..models.transfer import ProfileExportData
from ..storage.json_store import load_json
from ..storage.json_store import load_model
from ..storage.json_store import save_json
from ..storage.json_store import save_model

logger = logging.getLogger(__name__)

PLUGIN_CONFIG_FILE_NAME = "config.json"
PLUGINS_DIR_NAME = "plugins"


def plugin_config_file(profile_dir: Path, plugin_id: str) -> Path:
    return profile_dir / PLUGINS_DIR_NAME / plugin_id / PLUGIN_CONFIG_FILE_NAME


def collect_plugin_configs(profile_dir: Path, plugin_ids: list[str]) -> dict[str, dict[str, Any]]:
    """Read the per-profile config.json of each plugin that has one."""
    configs: dict[str, dict[str, Any]] = {}
    for plugin_id in plugin_ids:
        config = load_json(plugin_config_file(profile_dir, plugin_id))
        if config is not None:
            configs[plugin_id] = config
    return configs


def write_plugin_configs(profile_dir: Path, configs: dict[str, dict[str, Any]]) -> int:
    """Write imported plugin configs into a profile directory.

    Returns:
        Number of config files written
    """
    written = 0
    for plugin_id, config in configs.items():
        if not plugin_id or Path(plugin_id).name != plugin_id:
            logger.warning(f"Skipping config with invalid plugin id '{plugin_id}'")
            continue
        target = plugin_config_file(profile_dir, plugin_id)
        try:
            save_json(target, config)
            written += 1
        except OSError as e:
            logger.error(f"Failed to write plugin config {target}: {e}")
    return written


def save_export(path: Path, data: ProfileExportData) -> bool:
    try:
        save_model(path, data)
    except OSError as e:
        logger.error(f"Failed to write profile export to {path}: {e}")
        return False
    logger.info(f"Exported profile '{data.profile_id}' to {path}")
    return True


def load_export(path: Path) -> ProfileExportData | None:
    """Load an export file; None if it is missing or not a valid export."""
    return load_model(path, ProfileExportData)


def parse_export(payload: dict[str, Any]) -> ProfileExportData | None:
    """Validate an already decoded export document."""
    try:
        return ProfileExportData.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Rejected profile export: {e.error_count()} validation error(s)")
        return None
