"""Directory-backed collaborators for the library's plugin protocols.

The real script host runs inside the desktop shell; the daemon only records
what it would have been told to do.
"""

import logging
from collections import deque
from collections.abc import Callable
from pathlib import Path
from typing import Any

from loadout_library.catalogs import PluginTemplateCatalog
from loadout_library.models import InstallResult
from loadout_library.storage import load_json
from loadout_library.storage import save_model
from loadout_library.utils.fs import copy_tree
from loadout_library.utils.fs import remove_tree

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAME = "plugin.json"
MAX_RECORDED_CALLS = 100


def is_valid_plugin_id(plugin_id: str) -> bool:
    return bool(plugin_id and plugin_id.strip()) and Path(plugin_id).name == plugin_id


class DirectoryPluginLibrary:
    """Plugin library rooted at one directory.

    A plugin is installed when <library_dir>/<plugin_id>/plugin.json exists.
    Installing copies the plugin's built-in template directory.
    """

    def __init__(self, library_dir: Path, plugin_catalog: PluginTemplateCatalog) -> None:
        self.library_dir = Path(library_dir)
        self.plugin_catalog = plugin_catalog

    def plugin_directory(self, plugin_id: str) -> Path:
        template = self.plugin_catalog.get(plugin_id)
        return self.library_dir / (template.id if template else plugin_id)

    def is_installed(self, plugin_id: str) -> bool:
        if not is_valid_plugin_id(plugin_id):
            return False
        return (self.plugin_directory(plugin_id) / MANIFEST_FILE_NAME).is_file()

    def get_manifest(self, plugin_id: str) -> dict[str, Any] | None:
        if not is_valid_plugin_id(plugin_id):
            return None
        return load_json(self.plugin_directory(plugin_id) / MANIFEST_FILE_NAME)

    def list_installed(self) -> list[str]:
        if not self.library_dir.is_dir():
            return []
        return sorted(p.name for p in self.library_dir.iterdir() if (p / MANIFEST_FILE_NAME).is_file())

    def install_plugin(self, plugin_id: str) -> InstallResult:
        if self.is_installed(plugin_id):
            return InstallResult(is_success=True)

        template = self.plugin_catalog.get(plugin_id)
        if template is None:
            return InstallResult(is_success=False, error_message=f"Plugin '{plugin_id}' is not in the plugin catalog")

        target = self.plugin_directory(template.id)
        template_dir = self.plugin_catalog.template_directory(template.id)
        if template_dir.is_dir() and not copy_tree(template_dir, target):
            return InstallResult(is_success=False, error_message=f"Could not copy files of plugin '{template.id}'")

        manifest = target / MANIFEST_FILE_NAME
        if not manifest.exists():
            try:
                save_model(manifest, template)
            except OSError as e:
                logger.error(f"Failed to write manifest for '{template.id}': {e}")
                return InstallResult(is_success=False, error_message=str(e))

        logger.info(f"Installed plugin '{template.id}' into {target}")
        return InstallResult(is_success=True)

    def uninstall_plugin(self, plugin_id: str) -> bool:
        """Delete an installed plugin's directory.

        Only directories holding a manifest are removed; ids that are not a
        single path component are rejected.
        """
        if not is_valid_plugin_id(plugin_id):
            logger.warning(f"Refusing to uninstall plugin with invalid id '{plugin_id}'")
            return False
        if not self.is_installed(plugin_id):
            logger.debug(f"Plugin '{plugin_id}' is not installed")
            return False
        directory = self.plugin_directory(plugin_id)
        if not remove_tree(directory):
            return False
        logger.info(f"Uninstalled plugin '{plugin_id}'")
        return True


class LoggingPluginHost:
    """Plugin host stand-in that logs and records its most recent calls.

    Args:
        plugin_resolver: Returns the plugin ids to load for a profile
    """

    def __init__(self, plugin_resolver: Callable[[str], list[str]] | None = None) -> None:
        self.plugin_resolver = plugin_resolver
        self.active_profile_id: str | None = None
        self.loaded_plugins: list[str] = []
        self.calls: deque[tuple[str, Any]] = deque(maxlen=MAX_RECORDED_CALLS)

    def unload_all_plugins(self) -> None:
        logger.info(f"Unloading {len(self.loaded_plugins)} plugin(s)")
        self.calls.append(("unload_all_plugins", None))
        self.loaded_plugins = []
        self.active_profile_id = None

    def load_plugins_for_profile(self, profile_id: str) -> None:
        self.calls.append(("load_plugins_for_profile", profile_id))
        self.active_profile_id = profile_id
        self.loaded_plugins = self.plugin_resolver(profile_id) if self.plugin_resolver else []
        logger.info(f"Loaded {len(self.loaded_plugins)} plugin(s) for profile '{profile_id}'")

    def broadcast_event(self, name: str, payload: dict[str, Any]) -> None:
        self.calls.append(("broadcast_event", (name, payload)))
        logger.debug(f"Broadcast {name}: {payload}")
