"""Protocols (ports) for the collaborators this library drives but does not own."""

from typing import Any
from typing import Protocol

from .models.results import InstallResult


class PluginLibrary(Protocol):
    """Installs plugin files and reports what is present on disk."""

    def is_installed(self, plugin_id: str) -> bool: ...
    def install_plugin(self, plugin_id: str) -> InstallResult: ...
    def get_manifest(self, plugin_id: str) -> dict[str, Any] | None: ...


class PluginHost(Protocol):
    """Loads and runs plugin code for the active profile."""

    def unload_all_plugins(self) -> None: ...
    def load_plugins_for_profile(self, profile_id: str) -> None: ...
    def broadcast_event(self, name: str, payload: dict[str, Any]) -> None: ...
