"""Active profile coordinator.

Holds the single current-profile slot and the in-memory list of subscribed
profiles. Operations that touch both the subscription store and the
association index run under one cascade lock so two cascades never
interleave their writes; initialize() drops association entries left behind
by a cascade that was interrupted between the two writes.
"""

import logging
from collections.abc import Iterable
from pathlib import Path
from threading import RLock

from ..associations import PluginAssociationManager
from ..catalogs import PluginTemplateCatalog
from ..catalogs import ProfileTemplateCatalog
from ..events import EventChannel
from ..models.associations import PluginReferenceEntry
from ..models.events import ProfileChangedEvent
from ..models.profiles import PROFILE_FILE_NAME
from ..models.profiles import Profile
from ..models.profiles import ProfileDefaults
from ..models.results import BatchOutcome
from ..models.results import ProfileImportResult
from ..models.results import UnsubscribeResult
from ..models.transfer import MarketplaceProfile
from ..models.transfer import ProfileExportData
from ..protocols import PluginHost
from ..protocols import PluginLibrary
from ..storage.json_store import load_model
from ..storage.json_store import save_model
from ..subscriptions import SubscriptionStore
from ..utils.fs import copy_tree
from .activation import match_profile
from .activation import running_process_names
from .transfer import collect_plugin_configs
from .transfer import save_export
from .transfer import write_plugin_configs

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_ID = "default"
DEFAULT_PROFILE_NAME = "Default"
PROFILE_CHANGED_EVENT = "profileChanged"


def _is_valid_profile_id(profile_id: str) -> bool:
    return bool(profile_id and profile_id.strip()) and Path(profile_id).name == profile_id


class ProfileCoordinator:
    """Switches, provisions and removes profiles across both stores.

    Example:
        >>> coordinator = ProfileCoordinator(store, associations, profile_catalog,
        ...                                  plugin_catalog, library, host)
        >>> coordinator.initialize()
        >>> coordinator.switch_profile("arcade")
        True
    """

    def __init__(
        self,
        store: SubscriptionStore,
        associations: PluginAssociationManager,
        profile_catalog: ProfileTemplateCatalog,
        plugin_catalog: PluginTemplateCatalog,
        plugin_library: PluginLibrary,
        plugin_host: PluginHost,
        default_profile_id: str = DEFAULT_PROFILE_ID,
    ) -> None:
        self.store = store
        self.associations = associations
        self.profile_catalog = profile_catalog
        self.plugin_catalog = plugin_catalog
        self.plugin_library = plugin_library
        self.plugin_host = plugin_host
        self.default_profile_id = default_profile_id
        self.profile_changed: EventChannel[ProfileChangedEvent] = EventChannel("profile-changed")

        self._profiles: list[Profile] = []
        self._current: Profile | None = None
        self._lock = RLock()
        self._cascade_lock = RLock()

    # --- Startup ---

    def initialize(self, reconcile: bool = True) -> None:
        """Load subscriptions, guarantee the default profile and select it."""
        with self._cascade_lock:
            self.store.load()
            self._ensure_default_subscribed()
            if reconcile:
                self.reconcile_associations()

        with self._lock:
            self._load_profiles()
            self._current = self.get_profile(self.default_profile_id)
        logger.info(f"Profile coordinator ready: {len(self._profiles)} profile(s), current '{self._current.id}'")

    def _is_default(self, profile_id: str) -> bool:
        return profile_id.casefold() == self.default_profile_id.casefold()

    def _ensure_default_subscribed(self) -> None:
        if self.store.is_profile_subscribed(self.default_profile_id):
            return

        if self.profile_catalog.exists(self.default_profile_id):
            if self._subscribe_from_template(self.default_profile_id):
                logger.info("Auto-subscribed default profile from its built-in template")
                return
            logger.warning("Could not provision default profile from its template, creating it instead")

        if not self._profile_file(self.default_profile_id).exists():
            self._write_profile(self._new_default_profile())
        if self.store.register_profile(self.default_profile_id):
            logger.info("Created and subscribed default profile")

    def _new_default_profile(self) -> Profile:
        return Profile(
            id=self.default_profile_id,
            name=DEFAULT_PROFILE_NAME,
            defaults=ProfileDefaults(),
        )

    def _create_default_profile(self) -> Profile:
        """Materialize the default profile, preferring its built-in template."""
        if self.profile_catalog.exists(self.default_profile_id):
            template_dir = self.profile_catalog.template_directory(self.default_profile_id)
            if (template_dir / PROFILE_FILE_NAME).exists() and copy_tree(
                template_dir, self.profile_directory(self.default_profile_id)
            ):
                profile = load_model(self._profile_file(self.default_profile_id), Profile)
                if profile is not None:
                    return profile.model_copy(update={"id": self.default_profile_id})

        profile = self._new_default_profile()
        self._write_profile(profile)
        return profile

    def reconcile_associations(self) -> list[str]:
        """Drop association entries of profiles with no subscription record.

        Returns:
            Ids of the removed entries
        """
        subscribed = {p.casefold() for p in self.store.get_subscribed_profiles()}
        removed = []
        with self._cascade_lock:
            for profile_id in self.associations.get_known_profile_ids():
                if profile_id.casefold() in subscribed:
                    continue
                if self.associations.remove_profile(profile_id):
                    logger.warning(f"Removed association entry of unsubscribed profile '{profile_id}'")
                    removed.append(profile_id)
        return removed

    # --- Loading ---

    def _profile_file(self, profile_id: str) -> Path:
        return self.store.profile_directory(profile_id) / PROFILE_FILE_NAME

    def _write_profile(self, profile: Profile) -> bool:
        path = self._profile_file(profile.id)
        try:
            save_model(path, profile)
        except OSError as e:
            logger.error(f"Failed to save profile to {path}: {e}")
            return False
        return True

    def _load_profiles(self) -> None:
        profiles: list[Profile] = []
        for profile_id in self.store.get_subscribed_profiles():
            path = self._profile_file(profile_id)
            if not path.exists():
                logger.warning(f"Subscribed profile file does not exist: {path}")
                continue
            profile = load_model(path, Profile)
            if profile is None:
                logger.warning(f"Skipping unreadable profile file: {path}")
                continue
            if profile.id != profile_id:
                profile = profile.model_copy(update={"id": profile_id})
            profiles.append(profile)
            logger.debug(f"Loaded subscribed profile: {profile_id}")

        if not any(self._is_default(p.id) for p in profiles):
            profiles.insert(0, self._create_default_profile())

        self._profiles = profiles

    def reload_profiles(self) -> None:
        """Re-read every subscribed profile.

        If the current profile no longer exists the coordinator falls back to
        the default profile.
        """
        with self._lock:
            self.store.reload()
            self._load_profiles()
            current_id = self._current.id if self._current else self.default_profile_id
            refreshed = self.get_profile(current_id)
            if refreshed is not None:
                self._current = refreshed
                return

        logger.info(f"Current profile '{current_id}' is gone, falling back to the default profile")
        self.switch_profile(self.default_profile_id)

    # --- Queries ---

    @property
    def profiles(self) -> list[Profile]:
        with self._lock:
            return list(self._profiles)

    @property
    def current_profile(self) -> Profile:
        with self._lock:
            if self._current is None:
                raise RuntimeError("ProfileCoordinator.initialize() has not been called")
            return self._current

    def get_profile(self, profile_id: str) -> Profile | None:
        if not profile_id:
            return None
        with self._lock:
            return next((p for p in self._profiles if p.id.casefold() == profile_id.casefold()), None)

    def profile_directory(self, profile_id: str) -> Path:
        profile = self.get_profile(profile_id)
        return self.store.profile_directory(profile.id if profile else profile_id)

    # --- Switching ---

    def switch_profile(self, profile_id: str) -> bool:
        """Make a profile current and reload the plugin host for it.

        Host calls happen in order: unload all, update the slot, load the new
        profile's plugins, broadcast profileChanged. The ProfileChanged
        notification is delivered last.

        Returns:
            False if the profile is unknown or the host refused to unload
        """
        profile = self.get_profile(profile_id)
        if profile is None:
            logger.warning(f"Cannot switch to unknown profile '{profile_id}'")
            return False

        with self._lock:
            previous = self._current
            try:
                self.plugin_host.unload_all_plugins()
            except Exception as e:
                logger.error(f"Plugin host failed to unload plugins, staying on current profile: {e}")
                return False

            self._current = profile

            try:
                self.plugin_host.load_plugins_for_profile(profile.id)
            except Exception as e:
                logger.error(f"Plugin host failed to load plugins for '{profile.id}': {e}")
            try:
                self.plugin_host.broadcast_event(PROFILE_CHANGED_EVENT, {"profileId": profile.id})
            except Exception as e:
                logger.error(f"Plugin host failed to broadcast {PROFILE_CHANGED_EVENT}: {e}")

        logger.info(f"Switched to profile '{profile.id}'")
        self.profile_changed.emit(
            ProfileChangedEvent(profile_id=profile.id, previous_profile_id=previous.id if previous else None)
        )
        return True

    def switch_for_processes(self, process_names: Iterable[str] | None = None) -> Profile | None:
        """Switch to the profile whose activation rules match a running process.

        Args:
            process_names: Running process names (default: scan with psutil)

        Returns:
            The profile switched to, or None if nothing matched or it is
            already current
        """
        if process_names is None:
            process_names = running_process_names()
        target = match_profile(self.profiles, process_names)
        if target is None:
            return None
        with self._lock:
            if self._current is not None and self._current.id == target.id:
                return None
        return target if self.switch_profile(target.id) else None

    # --- Subscription ---

    def _subscribe_from_template(self, profile_id: str) -> bool:
        template = self.profile_catalog.get(profile_id)
        if not self.store.subscribe_profile(profile_id) or template is None:
            return False

        self.associations.set_original_plugins(template.id, template.recommended_plugins)
        self.associations.add_plugins_to_profile(self.store.get_subscribed_plugins(template.id), template.id)
        return True

    def subscribe_profile(self, profile_id: str) -> bool:
        """Provision a profile from its template and reference its plugins.

        Returns:
            False if already subscribed or no template exists
        """
        if not profile_id or not profile_id.strip():
            logger.warning("Cannot subscribe profile: empty profile id")
            return False

        with self._cascade_lock:
            if not self._subscribe_from_template(profile_id):
                return False

        self.reload_profiles()
        logger.info(f"Subscribed profile '{profile_id}'")
        return True

    def unsubscribe_profile(self, profile_id: str) -> UnsubscribeResult:
        """Remove a profile from both stores and delete its directory.

        The default profile is rejected. If the profile is current, the
        coordinator switches to the default profile first.
        """
        if not profile_id or not profile_id.strip():
            return UnsubscribeResult.failed("Profile id must not be empty")
        if self._is_default(profile_id):
            return UnsubscribeResult.failed("The default profile cannot be unsubscribed")

        with self._cascade_lock:
            profile = self.get_profile(profile_id)
            if profile is not None:
                profile_id = profile.id

            with self._lock:
                is_current = self._current is not None and self._current.id.casefold() == profile_id.casefold()
            if is_current and not self.switch_profile(self.default_profile_id):
                return UnsubscribeResult.failed(f"Could not switch away from '{profile_id}'")

            result = self.store.unsubscribe_profile(profile_id)
            if not result.success:
                return result

            self.associations.remove_profile(profile_id)

            with self._lock:
                self._profiles = [p for p in self._profiles if p.id.casefold() != profile_id.casefold()]

        logger.info(f"Unsubscribed profile '{profile_id}'")
        return result

    # --- Create/update ---

    def create_profile(
        self,
        profile_id: str,
        name: str,
        icon: str | None = None,
        plugin_ids: list[str] | None = None,
    ) -> Profile | None:
        """Create and subscribe a profile that has no built-in template.

        Returns:
            The new profile, or None if the id is invalid or already taken
        """
        if not _is_valid_profile_id(profile_id):
            logger.warning(f"Cannot create profile: invalid id '{profile_id}'")
            return None

        with self._cascade_lock:
            if self.get_profile(profile_id) is not None or self.store.is_profile_subscribed(profile_id):
                logger.debug(f"Profile '{profile_id}' already exists")
                return None

            profile = Profile(id=profile_id, name=name or profile_id, defaults=ProfileDefaults())
            if icon:
                profile.icon = icon
            if not self._write_profile(profile):
                return None
            if not self.store.register_profile(profile_id):
                return None
            if plugin_ids:
                self.associations.add_plugins_to_profile(plugin_ids, profile_id)

        self.reload_profiles()
        logger.info(f"Created profile '{profile_id}'")
        return self.get_profile(profile_id)

    def update_profile(self, profile_id: str, name: str | None = None, icon: str | None = None) -> Profile | None:
        with self._lock:
            profile = self.get_profile(profile_id)
            if profile is None:
                return None

            updates = {}
            if name:
                updates["name"] = name
            if icon:
                updates["icon"] = icon
            if not updates:
                return profile

            updated = profile.model_copy(update=updates)
            if not self._write_profile(updated):
                return None

            self._profiles = [updated if p.id == profile.id else p for p in self._profiles]
            if self._current is not None and self._current.id == profile.id:
                self._current = updated

        logger.info(f"Updated profile '{updated.id}'")
        return updated

    # --- Plugins ---

    def install_missing_plugins(self, profile_id: str) -> BatchOutcome:
        """Re-reference removed original plugins and install absent ones.

        A plugin that is already installed and only needed its reference
        restored counts as succeeded.
        """
        outcome = BatchOutcome()
        profile = self.get_profile(profile_id)
        if profile is None:
            return outcome

        missing_original = self.associations.get_missing_original_plugins(profile.id)
        wanted = list(self.associations.get_missing_plugins(profile.id))
        for plugin_id in missing_original:
            if not any(p.casefold() == plugin_id.casefold() for p in wanted):
                wanted.append(plugin_id)

        for plugin_id in wanted:
            if plugin_id in missing_original:
                self.associations.add_plugin_to_profile(plugin_id, profile.id)

            if self.associations.is_plugin_installed(plugin_id):
                outcome.record(plugin_id, True)
                continue

            try:
                result = self.plugin_library.install_plugin(plugin_id)
            except Exception as e:
                logger.error(f"Plugin library failed to install '{plugin_id}': {e}")
                outcome.record(plugin_id, False)
                continue
            if not result.is_success:
                logger.warning(f"Could not install plugin '{plugin_id}': {result.error_message}")
            outcome.record(plugin_id, result.is_success)

        logger.info(
            f"Install missing for '{profile.id}': {outcome.succeeded} succeeded, {outcome.failed} failed"
        )
        return outcome

    def uninstall_plugin_everywhere(self, plugin_id: str) -> int:
        """Drop a plugin from every profile in both stores.

        Returns:
            Number of profiles whose references lost the plugin
        """
        if not plugin_id:
            return 0

        template = self.plugin_catalog.get(plugin_id)
        store_plugin_id = template.id if template else plugin_id

        with self._cascade_lock:
            removed = self.associations.remove_plugin_from_all_profiles(plugin_id)
            for profile_id in self.store.get_subscribed_profiles():
                if self.store.is_plugin_subscribed(store_plugin_id, profile_id):
                    self.store.unsubscribe_plugin(store_plugin_id, profile_id)

        logger.info(f"Removed plugin '{plugin_id}' from {removed} profile(s)")
        return removed

    # --- Export/import ---

    def export_profile(self, profile_id: str) -> ProfileExportData | None:
        profile = self.get_profile(profile_id)
        if profile is None:
            return None

        references = [
            PluginReferenceEntry(plugin_id=r.plugin_id, enabled=r.enabled, added_at=r.added_at)
            for r in self.associations.get_plugins_in_profile(profile.id)
        ]
        return ProfileExportData(
            profile_id=profile.id,
            profile_name=profile.name,
            profile_config=profile,
            plugin_references=references,
            plugin_configs=collect_plugin_configs(
                self.profile_directory(profile.id), [r.plugin_id for r in references]
            ),
        )

    def export_profile_to_file(self, profile_id: str, path: Path) -> bool:
        data = self.export_profile(profile_id)
        if data is None:
            logger.warning(f"Cannot export unknown profile '{profile_id}'")
            return False
        return save_export(Path(path), data)

    def _profile_exists(self, profile_id: str) -> bool:
        return self.get_profile(profile_id) is not None or self.store.is_profile_subscribed(profile_id)

    def preview_import(self, data: ProfileExportData) -> ProfileImportResult:
        """Report what an import would do without changing anything."""
        missing = [r.plugin_id for r in data.plugin_references if not self.associations.is_plugin_installed(r.plugin_id)]
        return ProfileImportResult(
            is_success=True,
            profile_id=data.profile_id,
            missing_plugins=missing,
            profile_exists=self._profile_exists(data.profile_id),
        )

    def import_profile(self, data: ProfileExportData, overwrite: bool = False) -> ProfileImportResult:
        """Create (or replace) a profile from an export document.

        Overwriting replaces the profile config and its whole reference list;
        the original plugin list of the profile is kept.
        """
        if not _is_valid_profile_id(data.profile_id):
            return ProfileImportResult.failure(f"Invalid profile id '{data.profile_id}'")

        with self._cascade_lock:
            existing = self.get_profile(data.profile_id)
            exists = existing is not None or self.store.is_profile_subscribed(data.profile_id)
            if exists and not overwrite:
                return ProfileImportResult.exists(data.profile_id)

            profile_id = existing.id if existing else data.profile_id
            profile = data.profile_config.model_copy(
                update={"id": profile_id, "name": data.profile_name or data.profile_config.name}
            )
            if not self._write_profile(profile):
                return ProfileImportResult.failure(f"Could not write profile '{profile_id}'")
            write_plugin_configs(self.store.profile_directory(profile_id), data.plugin_configs)

            if not self.store.is_profile_subscribed(profile_id) and not self.store.register_profile(profile_id):
                return ProfileImportResult.failure(f"Could not subscribe profile '{profile_id}'")

            self.associations.replace_plugin_references(profile_id, data.plugin_references)

        missing = self.associations.get_missing_plugins(profile_id)
        self.reload_profiles()
        logger.info(f"Imported profile '{profile_id}' ({len(missing)} missing plugin(s))")
        return ProfileImportResult.success(profile_id, missing)

    def install_marketplace_profile(self, listing: MarketplaceProfile, overwrite: bool = False) -> ProfileImportResult:
        """Provision a profile from a marketplace listing.

        The listing's plugin ids become both the references and the original
        plugin list of the profile.
        """
        if not _is_valid_profile_id(listing.id):
            return ProfileImportResult.failure(f"Invalid profile id '{listing.id}'")

        with self._cascade_lock:
            existing = self.get_profile(listing.id)
            exists = existing is not None or self.store.is_profile_subscribed(listing.id)
            if exists and not overwrite:
                return ProfileImportResult.exists(listing.id)

            profile_id = existing.id if existing else listing.id
            profile = Profile(id=profile_id, name=listing.name or profile_id, defaults=ProfileDefaults())
            if not self._write_profile(profile):
                return ProfileImportResult.failure(f"Could not write profile '{profile_id}'")
            if not self.store.is_profile_subscribed(profile_id) and not self.store.register_profile(profile_id):
                return ProfileImportResult.failure(f"Could not subscribe profile '{profile_id}'")

            for plugin_id in listing.plugin_ids:
                if self.plugin_catalog.exists(plugin_id):
                    self.store.subscribe_plugin(plugin_id, profile_id)

            if exists:
                self.associations.remove_profile(profile_id)
            self.associations.add_plugins_to_profile(listing.plugin_ids, profile_id)
            self.associations.set_original_plugins(profile_id, listing.plugin_ids)

        missing = self.associations.get_missing_plugins(profile_id)
        self.reload_profiles()
        logger.info(f"Installed marketplace profile '{profile_id}' from {listing.author or 'unknown author'}")
        return ProfileImportResult.success(profile_id, missing)
