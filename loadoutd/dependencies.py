"""Shared dependency factories for FastAPI endpoints and the CLI.

This is the composition root: the one process-wide instance of each store
is built here and handed to the components that need it.
"""

import logging
from pathlib import Path
from threading import Lock

from loadout_library.associations import PluginAssociationManager
from loadout_library.catalogs import PluginTemplateCatalog
from loadout_library.catalogs import ProfileTemplateCatalog
from loadout_library.config import LoadoutSettings
from loadout_library.config import load_config
from loadout_library.models import PluginInstallStatus
from loadout_library.profiles import DEFAULT_PROFILE_ID
from loadout_library.profiles import ProfileCoordinator
from loadout_library.storage import get_builtin_dir
from loadout_library.storage import get_data_dir
from loadout_library.storage.paths import ASSOCIATIONS_FILE_NAME
from loadout_library.subscriptions import SubscriptionStore

from .adapters import DirectoryPluginLibrary
from .adapters import LoggingPluginHost

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Wires catalogs, stores, adapters and the coordinator together."""

    def __init__(
        self,
        data_dir: Path,
        builtin_dir: Path,
        default_profile_id: str = DEFAULT_PROFILE_ID,
        reconcile: bool = True,
    ) -> None:
        self.data_dir = Path(data_dir)
        self.builtin_dir = Path(builtin_dir)

        self.profile_catalog = ProfileTemplateCatalog(self.builtin_dir / "profiles")
        self.plugin_catalog = PluginTemplateCatalog(self.builtin_dir / "plugins")
        self.plugin_library = DirectoryPluginLibrary(self.data_dir / "plugins", self.plugin_catalog)

        self.store = SubscriptionStore(self.data_dir, self.profile_catalog, self.plugin_catalog)
        self.associations = PluginAssociationManager(self.data_dir / ASSOCIATIONS_FILE_NAME, self.plugin_library)
        self.plugin_host = LoggingPluginHost(self._loadable_plugins)

        self.coordinator = ProfileCoordinator(
            store=self.store,
            associations=self.associations,
            profile_catalog=self.profile_catalog,
            plugin_catalog=self.plugin_catalog,
            plugin_library=self.plugin_library,
            plugin_host=self.plugin_host,
            default_profile_id=default_profile_id,
        )
        self.coordinator.initialize(reconcile=reconcile)

    @classmethod
    def from_settings(cls, settings: LoadoutSettings) -> "ServiceContainer":
        data_dir = Path(settings.data_path) if settings.data_path else get_data_dir()
        builtin_dir = Path(settings.builtin_path) if settings.builtin_path else get_builtin_dir()
        logger.info(f"Data root: {data_dir}, built-in templates: {builtin_dir}")
        return cls(
            data_dir=data_dir,
            builtin_dir=builtin_dir,
            default_profile_id=settings.default_profile_id,
            reconcile=settings.reconcile_on_start,
        )

    def _loadable_plugins(self, profile_id: str) -> list[str]:
        return [
            ref.plugin_id
            for ref in self.associations.get_plugins_in_profile(profile_id)
            if ref.status == PluginInstallStatus.INSTALLED
        ]


_container: ServiceContainer | None = None
_container_lock = Lock()


def get_container() -> ServiceContainer:
    """Get the process-wide service container, building it on first use.

    Returns:
        ServiceContainer instance
    """
    global _container
    with _container_lock:
        if _container is None:
            _container = ServiceContainer.from_settings(load_config())
        return _container


def reset_container() -> None:
    """Forget the current container so the next call rebuilds it."""
    global _container
    with _container_lock:
        _container = None
