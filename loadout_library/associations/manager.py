"""Plugin association manager.

Owns associations.json, the authoritative profile -> plugin reference index,
and answers queries in both directions. Every read-modify-persist cycle holds
the index lock; change notifications are emitted after the lock is released
and only once the write succeeded.

Identifiers are compared case-insensitively throughout this module.
"""

import logging
from collections.abc import Iterable
from datetime import UTC
from datetime import datetime
from pathlib import Path
from threading import RLock

from ..events import EventChannel
from ..models.associations import AssociationIndex
from ..models.associations import PluginReference
from ..models.associations import PluginReferenceEntry
from ..models.associations import resolve_status
from ..models.events import AssociationChangedEvent
from ..models.events import AssociationChangeType
from ..protocols import PluginLibrary
from ..storage.json_store import load_model
from ..storage.json_store import save_model

logger = logging.getLogger(__name__)


def _same_id(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def _find_key(mapping: dict, profile_id: str) -> str | None:
    """Return the stored spelling of a profile key, if any."""
    if profile_id in mapping:
        return profile_id
    for key in mapping:
        if _same_id(key, profile_id):
            return key
    return None


def _contains(entries: list[PluginReferenceEntry], plugin_id: str) -> bool:
    return any(_same_id(e.plugin_id, plugin_id) for e in entries)


def _clean_ids(ids: Iterable[str] | None) -> list[str]:
    if ids is None:
        return []
    return [i for i in ids if i and i.strip()]


class PluginAssociationManager:
    """Profile <-> plugin reference index.

    Storage structure:
        <data_dir>/associations.json
            {
              "version": 1,
              "profilePlugins": {"<profile>": [{"pluginId", "enabled", "addedAt"}]},
              "originalPlugins": {"<profile>": ["<plugin>", ...]}
            }

    The index is loaded on first access and cached until reload().
    """

    def __init__(self, index_file: Path, plugin_library: PluginLibrary) -> None:
        """Initialize the manager.

        Args:
            index_file: Path to associations.json
            plugin_library: Consulted to resolve each reference's installation status
        """
        self.index_file = Path(index_file)
        self.plugin_library = plugin_library
        self.changed: EventChannel[AssociationChangedEvent] = EventChannel("association-changed")

        self._index: AssociationIndex | None = None
        self._lock = RLock()

    # --- Index management ---

    def _load(self) -> AssociationIndex:
        index = load_model(self.index_file, AssociationIndex)
        if index is None:
            if self.index_file.exists():
                logger.warning(f"Discarding unreadable association index {self.index_file}")
            return AssociationIndex()
        return index

    def _get_index(self) -> AssociationIndex:
        if self._index is None:
            self._index = self._load()
        return self._index

    def _commit(self, index: AssociationIndex) -> bool:
        """Persist a modified copy and adopt it only if the write succeeded."""
        try:
            save_model(self.index_file, index)
        except OSError as e:
            logger.error(f"Failed to save association index to {self.index_file}: {e}")
            return False
        self._index = index
        return True

    def _working_copy(self) -> AssociationIndex:
        return self._get_index().model_copy(deep=True)

    def reload(self) -> None:
        """Re-read associations.json, discarding the cached index."""
        with self._lock:
            self._index = self._load()

    def subscribe(self, listener) -> None:
        """Register a change listener."""
        self.changed.subscribe(listener)

    def unsubscribe(self, listener) -> bool:
        return self.changed.unsubscribe(listener)

    def is_plugin_installed(self, plugin_id: str) -> bool:
        """Ask the plugin library; a failing library counts as not installed."""
        try:
            return bool(self.plugin_library.is_installed(plugin_id))
        except Exception as e:
            logger.warning(f"Plugin library failed to report '{plugin_id}', treating it as not installed: {e}")
            return False

    # --- Plugin -> Profile queries ---

    def get_profiles_using_plugin(self, plugin_id: str) -> list[str]:
        """Profiles whose reference list contains the plugin."""
        if not plugin_id:
            return []
        with self._lock:
            return [
                profile_id
                for profile_id, entries in self._get_index().profile_plugins.items()
                if _contains(entries, plugin_id)
            ]

    def get_plugin_reference_count(self, plugin_id: str) -> int:
        return len(self.get_profiles_using_plugin(plugin_id))

    # --- Profile -> Plugin queries ---

    def get_plugins_in_profile(self, profile_id: str) -> list[PluginReference]:
        """References of a profile, each annotated with its resolved status.

        An unknown profile yields an empty list.
        """
        if not profile_id:
            return []
        with self._lock:
            index = self._get_index()
            key = _find_key(index.profile_plugins, profile_id)
            if key is None:
                return []
            entries = [e.model_copy() for e in index.profile_plugins[key]]

        # The library is queried outside the lock
        return [e.to_reference(resolve_status(e.enabled, self.is_plugin_installed(e.plugin_id))) for e in entries]

    def get_missing_plugins(self, profile_id: str) -> list[str]:
        """Referenced plugins that are not installed, whether enabled or not."""
        if not profile_id:
            return []
        with self._lock:
            index = self._get_index()
            key = _find_key(index.profile_plugins, profile_id)
            if key is None:
                return []
            plugin_ids = [e.plugin_id for e in index.profile_plugins[key]]
        return [pid for pid in plugin_ids if not self.is_plugin_installed(pid)]

    def profile_contains_plugin(self, profile_id: str, plugin_id: str) -> bool:
        if not profile_id or not plugin_id:
            return False
        with self._lock:
            index = self._get_index()
            key = _find_key(index.profile_plugins, profile_id)
            return key is not None and _contains(index.profile_plugins[key], plugin_id)

    def get_all_profile_ids(self) -> list[str]:
        """Profiles with a reference entry, including empty ones."""
        with self._lock:
            return list(self._get_index().profile_plugins.keys())

    def get_known_profile_ids(self) -> list[str]:
        """Profiles with a reference entry or an original plugin list."""
        with self._lock:
            index = self._get_index()
            known = list(index.profile_plugins.keys())
            for key in index.original_plugins:
                if _find_key(index.profile_plugins, key) is None:
                    known.append(key)
            return known

    # --- Association operations ---

    def add_plugin_to_profile(self, plugin_id: str, profile_id: str, enabled: bool = True) -> bool:
        """Reference a plugin from a profile.

        Returns:
            False if the pairing already exists or the write failed
        """
        if not plugin_id or not profile_id:
            return False

        with self._lock:
            index = self._working_copy()
            key = _find_key(index.profile_plugins, profile_id) or profile_id
            entries = index.profile_plugins.setdefault(key, [])

            if _contains(entries, plugin_id):
                logger.debug(f"Plugin '{plugin_id}' is already referenced by profile '{profile_id}'")
                return False

            entries.append(PluginReferenceEntry(plugin_id=plugin_id, enabled=enabled, added_at=datetime.now(UTC)))
            if not self._commit(index):
                return False

        logger.info(f"Added plugin '{plugin_id}' to profile '{key}'")
        self.changed.emit(
            AssociationChangedEvent(change_type=AssociationChangeType.ADDED, plugin_id=plugin_id, profile_id=key)
        )
        return True

    def add_plugins_to_profile(self, plugin_ids: Iterable[str], profile_id: str) -> int:
        """Reference several plugins from one profile, skipping existing pairings.

        Returns:
            Number of references created
        """
        plugin_id_list = _clean_ids(plugin_ids)
        if not profile_id or not plugin_id_list:
            return 0

        with self._lock:
            index = self._working_copy()
            key = _find_key(index.profile_plugins, profile_id) or profile_id
            entries = index.profile_plugins.setdefault(key, [])

            added: list[str] = []
            for plugin_id in plugin_id_list:
                if _contains(entries, plugin_id):
                    continue
                entries.append(PluginReferenceEntry(plugin_id=plugin_id, added_at=datetime.now(UTC)))
                added.append(plugin_id)

            if not added:
                return 0
            if not self._commit(index):
                return 0

        logger.info(f"Added {len(added)} plugin(s) to profile '{key}'")
        self.changed.emit(
            AssociationChangedEvent(change_type=AssociationChangeType.BATCH_ADDED, plugin_ids=added, profile_id=key)
        )
        return len(added)

    def add_plugin_to_profiles(self, plugin_id: str, profile_ids: Iterable[str]) -> int:
        """Reference one plugin from several profiles, skipping existing pairings.

        Returns:
            Number of references created
        """
        profile_id_list = _clean_ids(profile_ids)
        if not plugin_id or not profile_id_list:
            return 0

        with self._lock:
            index = self._working_copy()

            added: list[str] = []
            for profile_id in profile_id_list:
                key = _find_key(index.profile_plugins, profile_id) or profile_id
                entries = index.profile_plugins.setdefault(key, [])
                if _contains(entries, plugin_id):
                    continue
                entries.append(PluginReferenceEntry(plugin_id=plugin_id, added_at=datetime.now(UTC)))
                added.append(key)

            if not added:
                return 0
            if not self._commit(index):
                return 0

        logger.info(f"Added plugin '{plugin_id}' to {len(added)} profile(s)")
        self.changed.emit(
            AssociationChangedEvent(change_type=AssociationChangeType.BATCH_ADDED, plugin_id=plugin_id, profile_ids=added)
        )
        return len(added)

    def replace_plugin_references(self, profile_id: str, references: Iterable[PluginReferenceEntry]) -> int:
        """Set a profile's reference sequence to the given entries in one commit.

        Entries keep their enabled flag and added_at; later duplicates of a
        plugin id are dropped. The original plugin list is left untouched.

        Returns:
            Number of references now held by the profile
        """
        if not profile_id:
            return 0

        entries: list[PluginReferenceEntry] = []
        for reference in references:
            if not reference.plugin_id.strip() or _contains(entries, reference.plugin_id):
                continue
            entries.append(
                PluginReferenceEntry(
                    plugin_id=reference.plugin_id, enabled=reference.enabled, added_at=reference.added_at
                )
            )

        with self._lock:
            index = self._working_copy()
            key = _find_key(index.profile_plugins, profile_id) or profile_id
            index.profile_plugins[key] = entries
            if not self._commit(index):
                return 0

        logger.info(f"Replaced references of profile '{key}' with {len(entries)} plugin(s)")
        self.changed.emit(
            AssociationChangedEvent(
                change_type=AssociationChangeType.BATCH_ADDED,
                plugin_ids=[e.plugin_id for e in entries],
                profile_id=key,
            )
        )
        return len(entries)

    def remove_plugin_from_profile(self, plugin_id: str, profile_id: str) -> bool:
        """Drop one reference. The profile's entry is kept, even if now empty."""
        if not plugin_id or not profile_id:
            return False

        with self._lock:
            index = self._working_copy()
            key = _find_key(index.profile_plugins, profile_id)
            if key is None:
                return False

            entries = index.profile_plugins[key]
            remaining = [e for e in entries if not _same_id(e.plugin_id, plugin_id)]
            if len(remaining) == len(entries):
                return False

            index.profile_plugins[key] = remaining
            if not self._commit(index):
                return False

        logger.info(f"Removed plugin '{plugin_id}' from profile '{key}'")
        self.changed.emit(
            AssociationChangedEvent(change_type=AssociationChangeType.REMOVED, plugin_id=plugin_id, profile_id=key)
        )
        return True

    def remove_plugin_from_all_profiles(self, plugin_id: str) -> int:
        """Drop a plugin from every profile, e.g. after it was uninstalled.

        Returns:
            Number of profiles that lost a reference
        """
        if not plugin_id:
            return 0

        with self._lock:
            index = self._working_copy()

            affected: list[str] = []
            for profile_id, entries in index.profile_plugins.items():
                remaining = [e for e in entries if not _same_id(e.plugin_id, plugin_id)]
                if len(remaining) < len(entries):
                    index.profile_plugins[profile_id] = remaining
                    affected.append(profile_id)

            if not affected:
                return 0
            if not self._commit(index):
                return 0

        logger.info(f"Removed plugin '{plugin_id}' from {len(affected)} profile(s)")
        self.changed.emit(
            AssociationChangedEvent(
                change_type=AssociationChangeType.BATCH_REMOVED, plugin_id=plugin_id, profile_ids=affected
            )
        )
        return len(affected)

    # --- Enable/disable ---

    def set_plugin_enabled(self, profile_id: str, plugin_id: str, enabled: bool) -> bool:
        """Toggle the enabled flag of an existing reference. Never creates one."""
        if not profile_id or not plugin_id:
            return False

        with self._lock:
            index = self._working_copy()
            key = _find_key(index.profile_plugins, profile_id)
            if key is None:
                return False

            entry = next((e for e in index.profile_plugins[key] if _same_id(e.plugin_id, plugin_id)), None)
            if entry is None:
                return False
            if entry.enabled == enabled:
                return True

            entry.enabled = enabled
            if not self._commit(index):
                return False

        logger.info(f"{'Enabled' if enabled else 'Disabled'} plugin '{plugin_id}' in profile '{key}'")
        self.changed.emit(
            AssociationChangedEvent(
                change_type=AssociationChangeType.ENABLED_CHANGED, plugin_id=entry.plugin_id, profile_id=key
            )
        )
        return True

    def get_plugin_enabled(self, profile_id: str, plugin_id: str) -> bool | None:
        """Enabled flag of a reference, or None if the pairing does not exist."""
        if not profile_id or not plugin_id:
            return None
        with self._lock:
            index = self._get_index()
            key = _find_key(index.profile_plugins, profile_id)
            if key is None:
                return None
            entry = next((e for e in index.profile_plugins[key] if _same_id(e.plugin_id, plugin_id)), None)
            return entry.enabled if entry else None

    # --- Profile management ---

    def remove_profile(self, profile_id: str) -> bool:
        """Delete a profile's whole entry, including its original plugin list.

        Unlike remove_plugin_from_profile, nothing is retained.
        """
        if not profile_id:
            return False

        with self._lock:
            index = self._working_copy()
            key = _find_key(index.profile_plugins, profile_id)
            original_key = _find_key(index.original_plugins, profile_id)
            if key is None and original_key is None:
                return False

            removed = [e.plugin_id for e in index.profile_plugins.pop(key, [])] if key else []
            if original_key is not None:
                index.original_plugins.pop(original_key)
            if not self._commit(index):
                return False

        logger.info(f"Removed profile '{key or original_key}' from association index")
        if removed:
            self.changed.emit(
                AssociationChangedEvent(
                    change_type=AssociationChangeType.BATCH_REMOVED,
                    plugin_ids=removed,
                    profile_id=key or original_key,
                )
            )
        return True

    # --- Original plugin lists ---

    def set_original_plugins(self, profile_id: str, plugin_ids: Iterable[str]) -> bool:
        """Record the plugin list a profile was provisioned with.

        Replaces any previous list wholesale; only call on (re-)provisioning.
        """
        if not profile_id:
            return False
        plugin_id_list = _clean_ids(plugin_ids)

        with self._lock:
            index = self._working_copy()
            key = _find_key(index.original_plugins, profile_id) or profile_id
            index.original_plugins[key] = plugin_id_list
            if not self._commit(index):
                return False

        logger.debug(f"Recorded {len(plugin_id_list)} original plugin(s) for profile '{key}'")
        return True

    def get_original_plugins(self, profile_id: str) -> list[str]:
        if not profile_id:
            return []
        with self._lock:
            index = self._get_index()
            key = _find_key(index.original_plugins, profile_id)
            return list(index.original_plugins[key]) if key is not None else []

    def has_original_plugins(self, profile_id: str) -> bool:
        return bool(self.get_original_plugins(profile_id))

    def get_missing_original_plugins(self, profile_id: str) -> list[str]:
        """Original plugins that are no longer referenced by the profile."""
        if not profile_id:
            return []
        with self._lock:
            index = self._get_index()
            original_key = _find_key(index.original_plugins, profile_id)
            if original_key is None:
                return []
            key = _find_key(index.profile_plugins, profile_id)
            entries = index.profile_plugins[key] if key is not None else []
            return [pid for pid in index.original_plugins[original_key] if not _contains(entries, pid)]
