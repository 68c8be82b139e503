"""Subscription store.

Owns subscriptions.json: which profiles the user has subscribed to and, per
profile, which plugin templates are subscribed. Subscribing a profile
provisions it by copying its built-in template into the user's Profiles/
directory.

Storage structure:
    <data_dir>/
        subscriptions.json
        Profiles/
            <profile_id>/
                profile.json
                plugins/
                    <plugin_id>/      # per-profile plugin instance config

The store never touches the association index; keeping the two consistent is
the coordinator's job.
"""

import logging
from pathlib import Path
from threading import RLock

from ..catalogs import PluginTemplateCatalog
from ..catalogs import ProfileTemplateCatalog
from ..models.results import UnsubscribeResult
from ..models.subscriptions import SubscriptionConfig
from ..storage.json_store import load_model
from ..storage.json_store import save_model
from ..storage.paths import PROFILES_DIR_NAME
from ..storage.paths import SUBSCRIPTIONS_FILE_NAME
from ..utils.fs import copy_tree
from ..utils.fs import remove_tree

logger = logging.getLogger(__name__)


class SubscriptionStore:
    """Persisted record of subscribed profiles and plugins.

    All mutating operations hold the store lock across the full
    read-modify-persist cycle. No public method raises; failures are
    reported through return values and logged.
    """

    def __init__(
        self,
        data_dir: Path,
        profile_catalog: ProfileTemplateCatalog,
        plugin_catalog: PluginTemplateCatalog,
        profiles_dir: Path | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            data_dir: Directory holding subscriptions.json
            profile_catalog: Built-in profile templates
            plugin_catalog: Built-in plugin templates
            profiles_dir: User profiles directory (default: <data_dir>/Profiles)
        """
        self.data_dir = Path(data_dir)
        self.subscriptions_file = self.data_dir / SUBSCRIPTIONS_FILE_NAME
        self.profiles_dir = Path(profiles_dir) if profiles_dir else self.data_dir / PROFILES_DIR_NAME
        self.profile_catalog = profile_catalog
        self.plugin_catalog = plugin_catalog

        self._config = SubscriptionConfig()
        self._loaded = False
        self._lock = RLock()

    # --- Load/Save ---

    def load(self) -> None:
        """(Re)load subscriptions.json; absent or malformed files yield an empty record."""
        with self._lock:
            config = load_model(self.subscriptions_file, SubscriptionConfig)
            if config is None:
                if self.subscriptions_file.exists():
                    logger.warning(f"Discarding unreadable subscription record {self.subscriptions_file}")
                config = SubscriptionConfig()
            self._config = config
            self._loaded = True
            logger.debug(f"Loaded subscriptions: {len(config.profiles)} profile(s)")

    def reload(self) -> None:
        self.load()

    def save(self) -> bool:
        with self._lock:
            return self._save_locked(self._config)

    def _save_locked(self, config: SubscriptionConfig) -> bool:
        try:
            save_model(self.subscriptions_file, config)
        except OSError as e:
            logger.error(f"Failed to save subscriptions to {self.subscriptions_file}: {e}")
            return False
        return True

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _commit(self, config: SubscriptionConfig) -> bool:
        """Persist a modified copy and adopt it only if the write succeeded."""
        if not self._save_locked(config):
            return False
        self._config = config
        return True

    # --- Paths ---

    def profile_directory(self, profile_id: str) -> Path:
        return self.profiles_dir / profile_id

    def plugin_config_directory(self, profile_id: str, plugin_id: str) -> Path:
        return self.profiles_dir / profile_id / "plugins" / plugin_id

    # --- Profile subscriptions ---

    def get_subscribed_profiles(self) -> list[str]:
        with self._lock:
            self._ensure_loaded()
            return list(self._config.profiles)

    def is_profile_subscribed(self, profile_id: str) -> bool:
        if not profile_id:
            return False
        with self._lock:
            self._ensure_loaded()
            return self._config.is_profile_subscribed(profile_id)

    def subscribe_profile(self, profile_id: str) -> bool:
        """Provision a profile from its built-in template and subscribe it.

        Copies the template directory into Profiles/<id>/, records the
        subscription and auto-subscribes every recommended plugin that exists
        in the plugin catalog.

        Returns:
            False if already subscribed, the template is unknown, or the copy
            or write failed; True otherwise
        """
        if not profile_id or not profile_id.strip():
            logger.warning("Cannot subscribe profile: empty profile id")
            return False

        template = self.profile_catalog.get(profile_id)
        if template is None:
            logger.warning(f"Cannot subscribe profile '{profile_id}': no built-in template")
            return False
        # Records use the catalog's spelling of the id
        profile_id = template.id

        with self._lock:
            self._ensure_loaded()

            if self._config.is_profile_subscribed(profile_id):
                logger.debug(f"Profile '{profile_id}' is already subscribed")
                return False

            template_dir = self.profile_catalog.template_directory(profile_id)
            if not copy_tree(template_dir, self.profile_directory(profile_id)):
                return False

            config = self._config.model_copy(deep=True)
            config.add_profile(profile_id)

            for plugin_id in template.recommended_plugins:
                plugin = self.plugin_catalog.get(plugin_id)
                if plugin is not None:
                    config.add_plugin(plugin.id, profile_id)
                    logger.debug(f"Auto-subscribed recommended plugin '{plugin.id}' to profile '{profile_id}'")
                else:
                    logger.warning(
                        f"Recommended plugin '{plugin_id}' of profile '{profile_id}' is not in the plugin catalog, skipping"
                    )

            if not self._commit(config):
                return False

        logger.info(f"Subscribed profile '{profile_id}'")
        return True

    def register_profile(self, profile_id: str) -> bool:
        """Subscribe a profile that has no built-in template.

        Used for user-created, imported and marketplace profiles, whose
        directory is written by the caller.

        Returns:
            False if already subscribed or the write failed
        """
        if not profile_id or not profile_id.strip():
            return False

        with self._lock:
            self._ensure_loaded()
            if self._config.is_profile_subscribed(profile_id):
                logger.debug(f"Profile '{profile_id}' is already subscribed")
                return False

            config = self._config.model_copy(deep=True)
            config.add_profile(profile_id)
            if not self._commit(config):
                return False

        logger.info(f"Registered profile '{profile_id}'")
        return True

    def unsubscribe_profile(self, profile_id: str) -> UnsubscribeResult:
        """Remove a profile's subscription record and its provisioned directory.

        Reports the plugins that were subscribed so the caller can clean up
        the association index.
        """
        if not profile_id or not profile_id.strip():
            return UnsubscribeResult.failed("Profile id must not be empty")

        with self._lock:
            self._ensure_loaded()

            if not self._config.is_profile_subscribed(profile_id):
                return UnsubscribeResult.failed(f"Profile '{profile_id}' is not subscribed")

            unsubscribed_plugins = self._config.get_subscribed_plugins(profile_id)

            if not remove_tree(self.profile_directory(profile_id)):
                return UnsubscribeResult.failed(f"Could not delete directory of profile '{profile_id}'")

            config = self._config.model_copy(deep=True)
            config.remove_profile(profile_id)
            if not self._commit(config):
                return UnsubscribeResult.failed(f"Could not save subscriptions after removing '{profile_id}'")

        logger.info(f"Unsubscribed profile '{profile_id}'")
        return UnsubscribeResult.succeeded(unsubscribed_plugins)

    def find_orphaned_profile_directories(self) -> list[Path]:
        """Profile directories with no subscription record.

        These are left behind by an interrupted provisioning and are ignored
        until the profile is explicitly subscribed again.
        """
        if not self.profiles_dir.is_dir():
            return []
        with self._lock:
            self._ensure_loaded()
            subscribed = set(self._config.profiles)
        return sorted(p for p in self.profiles_dir.iterdir() if p.is_dir() and p.name not in subscribed)

    # --- Plugin subscriptions ---

    def get_subscribed_plugins(self, profile_id: str) -> list[str]:
        if not profile_id:
            return []
        with self._lock:
            self._ensure_loaded()
            return self._config.get_subscribed_plugins(profile_id)

    def is_plugin_subscribed(self, plugin_id: str, profile_id: str) -> bool:
        if not plugin_id or not profile_id:
            return False
        with self._lock:
            self._ensure_loaded()
            return self._config.is_plugin_subscribed(plugin_id, profile_id)

    def subscribe_plugin(self, plugin_id: str, profile_id: str) -> bool:
        """Subscribe a catalog plugin to a subscribed profile. Idempotent."""
        if not plugin_id or not profile_id:
            logger.warning("Cannot subscribe plugin: empty plugin or profile id")
            return False

        with self._lock:
            self._ensure_loaded()

            if not self._config.is_profile_subscribed(profile_id):
                logger.warning(f"Cannot subscribe plugin '{plugin_id}': profile '{profile_id}' is not subscribed")
                return False

            plugin = self.plugin_catalog.get(plugin_id)
            if plugin is None:
                logger.warning(f"Cannot subscribe plugin '{plugin_id}': not in the plugin catalog")
                return False
            plugin_id = plugin.id

            if self._config.is_plugin_subscribed(plugin_id, profile_id):
                logger.debug(f"Plugin '{plugin_id}' is already subscribed to profile '{profile_id}'")
                return True

            config = self._config.model_copy(deep=True)
            config.add_plugin(plugin_id, profile_id)
            if not self._commit(config):
                return False

        logger.info(f"Subscribed plugin '{plugin_id}' to profile '{profile_id}'")
        return True

    def unsubscribe_plugin(self, plugin_id: str, profile_id: str) -> bool:
        """Unsubscribe a plugin and delete its per-profile configuration directory.

        Idempotent: a plugin that is not subscribed counts as unsubscribed.
        """
        if not plugin_id or not profile_id:
            logger.warning("Cannot unsubscribe plugin: empty plugin or profile id")
            return False

        with self._lock:
            self._ensure_loaded()

            if not self._config.is_profile_subscribed(profile_id):
                logger.warning(f"Cannot unsubscribe plugin '{plugin_id}': profile '{profile_id}' is not subscribed")
                return False

            if not self._config.is_plugin_subscribed(plugin_id, profile_id):
                logger.debug(f"Plugin '{plugin_id}' is not subscribed to profile '{profile_id}'")
                return True

            if not remove_tree(self.plugin_config_directory(profile_id, plugin_id)):
                return False

            config = self._config.model_copy(deep=True)
            config.remove_plugin(plugin_id, profile_id)
            if not self._commit(config):
                return False

        logger.info(f"Unsubscribed plugin '{plugin_id}' from profile '{profile_id}'")
        return True
