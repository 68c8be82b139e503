"""Unit tests for ProfileCoordinator."""

import logging
from pathlib import Path

import pytest

from loadout_library.associations import PluginAssociationManager
from loadout_library.catalogs import PluginTemplateCatalog
from loadout_library.catalogs import ProfileTemplateCatalog
from loadout_library.models import AssociationChangedEvent
from loadout_library.models import AssociationChangeType
from loadout_library.models import MarketplaceProfile
from loadout_library.models import ProfileChangedEvent
from loadout_library.profiles import ProfileCoordinator
from loadout_library.subscriptions import SubscriptionStore


def _make_coordinator(builtin: Path, data_dir: Path, library, host) -> ProfileCoordinator:
    profile_catalog = ProfileTemplateCatalog(builtin / "profiles")
    plugin_catalog = PluginTemplateCatalog(builtin / "plugins")
    return ProfileCoordinator(
        store=SubscriptionStore(data_dir, profile_catalog, plugin_catalog),
        associations=PluginAssociationManager(data_dir / "associations.json", library),
        profile_catalog=profile_catalog,
        plugin_catalog=plugin_catalog,
        plugin_library=library,
        plugin_host=host,
    )


@pytest.mark.unit
class TestStartup:
    """Test default profile guarantees on startup."""

    def test_default_subscribed_from_template(self, coordinator: ProfileCoordinator) -> None:
        assert coordinator.store.is_profile_subscribed("default")
        assert coordinator.current_profile.id == "default"
        assert [p.id for p in coordinator.profiles] == ["default"]

    def test_default_synthesized_without_template(
        self, builtin_dir_without_default: Path, data_dir: Path, plugin_library, plugin_host
    ) -> None:
        coordinator = _make_coordinator(builtin_dir_without_default, data_dir, plugin_library, plugin_host)

        coordinator.initialize()

        assert coordinator.store.is_profile_subscribed("default")
        assert coordinator.current_profile.name == "Default"
        assert (data_dir / "Profiles" / "default" / "profile.json").exists()

    def test_default_restored_when_missing_from_record(self, coordinator: ProfileCoordinator) -> None:
        """A record holding other profiles but not the default still gets it back."""
        coordinator.subscribe_profile("arcade")
        coordinator.store.unsubscribe_profile("default")

        coordinator.initialize()

        assert coordinator.store.is_profile_subscribed("default")
        assert coordinator.get_profile("default") is not None

    def test_current_profile_requires_initialize(self, store, associations, profile_catalog, plugin_catalog,
                                                 plugin_library, plugin_host) -> None:
        coordinator = ProfileCoordinator(
            store, associations, profile_catalog, plugin_catalog, plugin_library, plugin_host
        )
        with pytest.raises(RuntimeError):
            _ = coordinator.current_profile

    def test_reconcile_drops_unsubscribed_entries(
        self, coordinator: ProfileCoordinator, caplog: pytest.LogCaptureFixture
    ) -> None:
        coordinator.associations.add_plugin_to_profile("hud", "orphan")
        coordinator.associations.set_original_plugins("leftover", ["hud"])

        with caplog.at_level(logging.WARNING):
            coordinator.initialize()

        assert coordinator.associations.get_known_profile_ids() == []
        assert any("orphan" in r.getMessage() for r in caplog.records)

    def test_missing_profile_file_is_skipped(
        self, coordinator: ProfileCoordinator, caplog: pytest.LogCaptureFixture
    ) -> None:
        coordinator.subscribe_profile("racing")
        (coordinator.profile_directory("racing") / "profile.json").unlink()

        with caplog.at_level(logging.WARNING):
            coordinator.reload_profiles()

        assert coordinator.get_profile("racing") is None
        assert coordinator.get_profile("default") is not None
        assert any("does not exist" in r.getMessage() for r in caplog.records)


@pytest.mark.unit
class TestSwitching:
    """Test switching the active profile."""

    def test_switch_drives_host_in_order(self, coordinator: ProfileCoordinator, plugin_host) -> None:
        coordinator.subscribe_profile("arcade")
        plugin_host.on_load = lambda: coordinator.current_profile.id
        received: list[ProfileChangedEvent] = []
        coordinator.profile_changed.subscribe(received.append)

        assert coordinator.switch_profile("Arcade") is True

        assert plugin_host.calls == [
            ("unload_all_plugins",),
            ("load_plugins_for_profile", "arcade"),
            ("broadcast_event", "profileChanged", {"profileId": "arcade"}),
        ]
        assert plugin_host.seen_during_load == ["arcade"]
        assert [(e.profile_id, e.previous_profile_id) for e in received] == [("arcade", "default")]

    def test_switch_to_unknown_profile(self, coordinator: ProfileCoordinator, plugin_host) -> None:
        assert coordinator.switch_profile("nope") is False
        assert plugin_host.calls == []
        assert coordinator.current_profile.id == "default"

    def test_switch_aborts_when_unload_fails(self, coordinator: ProfileCoordinator, plugin_host) -> None:
        coordinator.subscribe_profile("arcade")
        plugin_host.fail_unload = True

        assert coordinator.switch_profile("arcade") is False
        assert coordinator.current_profile.id == "default"

    def test_switch_for_processes(self, coordinator: ProfileCoordinator) -> None:
        coordinator.subscribe_profile("arcade")
        coordinator.subscribe_profile("racing")

        assert coordinator.switch_for_processes(["explorer.exe", "RACER.EXE"]) is None
        switched = coordinator.switch_for_processes(["Arcade.EXE"])
        assert switched is not None and switched.id == "arcade"
        assert coordinator.switch_for_processes(["arcade"]) is None


@pytest.mark.unit
class TestSubscriptionCascade:
    """Test operations that keep both stores consistent."""

    def test_subscribe_provisions_references_and_originals(self, coordinator: ProfileCoordinator) -> None:
        assert coordinator.subscribe_profile("arcade") is True

        refs = [r.plugin_id for r in coordinator.associations.get_plugins_in_profile("arcade")]
        assert refs == ["hud", "timer"]
        assert coordinator.associations.get_original_plugins("arcade") == ["hud", "timer", "ghost"]
        assert coordinator.associations.get_missing_original_plugins("arcade") == ["ghost"]
        assert coordinator.get_profile("arcade") is not None

    def test_subscribe_twice(self, coordinator: ProfileCoordinator) -> None:
        assert coordinator.subscribe_profile("arcade") is True
        assert coordinator.subscribe_profile("arcade") is False

    def test_default_cannot_be_unsubscribed(self, coordinator: ProfileCoordinator) -> None:
        result = coordinator.unsubscribe_profile("DEFAULT")

        assert not result.success
        assert coordinator.store.is_profile_subscribed("default")
        assert coordinator.get_profile("default") is not None

    def test_unsubscribe_active_profile_falls_back_to_default(
        self, coordinator: ProfileCoordinator, plugin_host
    ) -> None:
        coordinator.subscribe_profile("arcade")
        coordinator.switch_profile("arcade")
        plugin_host.calls.clear()

        result = coordinator.unsubscribe_profile("arcade")

        assert result.success
        assert result.unsubscribed_plugins == ["hud", "timer"]
        assert coordinator.current_profile.id == "default"
        assert plugin_host.calls[1] == ("load_plugins_for_profile", "default")
        assert coordinator.get_profile("arcade") is None
        assert "arcade" not in coordinator.associations.get_known_profile_ids()
        assert not coordinator.profile_directory("arcade").exists()

    def test_unsubscribe_unknown_profile(self, coordinator: ProfileCoordinator) -> None:
        assert not coordinator.unsubscribe_profile("arcade").success

    def test_uninstall_plugin_everywhere(self, coordinator: ProfileCoordinator) -> None:
        coordinator.subscribe_profile("arcade")
        coordinator.subscribe_profile("racing")

        assert coordinator.uninstall_plugin_everywhere("HUD") == 2

        assert coordinator.associations.get_profiles_using_plugin("hud") == []
        assert not coordinator.store.is_plugin_subscribed("hud", "arcade")
        assert not coordinator.store.is_plugin_subscribed("hud", "racing")
        assert coordinator.store.is_plugin_subscribed("timer", "arcade")


@pytest.mark.unit
class TestProfileEditing:
    def test_create_profile(self, coordinator: ProfileCoordinator) -> None:
        profile = coordinator.create_profile("custom", "My Setup", icon="⭐", plugin_ids=["hud", "notes"])

        assert profile is not None
        assert profile.name == "My Setup"
        assert profile.icon == "⭐"
        assert coordinator.store.is_profile_subscribed("custom")
        assert [r.plugin_id for r in coordinator.associations.get_plugins_in_profile("custom")] == ["hud", "notes"]

    def test_create_profile_rejects_duplicates_and_bad_ids(self, coordinator: ProfileCoordinator) -> None:
        assert coordinator.create_profile("default", "Again") is None
        assert coordinator.create_profile("../escape", "Bad") is None
        assert coordinator.create_profile("", "Empty") is None

    def test_update_profile(self, coordinator: ProfileCoordinator) -> None:
        coordinator.subscribe_profile("arcade")

        updated = coordinator.update_profile("arcade", name="Retro")

        assert updated is not None and updated.name == "Retro"
        coordinator.reload_profiles()
        assert coordinator.get_profile("arcade").name == "Retro"

    def test_update_current_profile_refreshes_slot(self, coordinator: ProfileCoordinator) -> None:
        coordinator.update_profile("default", icon="🏠")
        assert coordinator.current_profile.icon == "🏠"

    def test_update_unknown_profile(self, coordinator: ProfileCoordinator) -> None:
        assert coordinator.update_profile("nope", name="x") is None


@pytest.mark.unit
class TestInstallMissing:
    def test_counts_successes_and_failures(self, coordinator: ProfileCoordinator, plugin_library) -> None:
        """timer installs, ghost is re-referenced but cannot be installed."""
        coordinator.subscribe_profile("arcade")

        outcome = coordinator.install_missing_plugins("arcade")

        assert (outcome.succeeded, outcome.failed) == (1, 1)
        assert outcome.failed_ids == ["ghost"]
        assert coordinator.associations.profile_contains_plugin("arcade", "ghost")
        assert plugin_library.is_installed("timer")

    def test_restored_original_that_is_installed_counts_as_success(
        self, coordinator: ProfileCoordinator, plugin_library
    ) -> None:
        coordinator.subscribe_profile("racing")
        coordinator.associations.remove_plugin_from_profile("hud", "racing")

        outcome = coordinator.install_missing_plugins("racing")

        assert (outcome.succeeded, outcome.failed) == (1, 0)
        assert plugin_library.install_calls == []

    def test_nothing_missing(self, coordinator: ProfileCoordinator) -> None:
        assert coordinator.install_missing_plugins("default").total == 0

    def test_unknown_profile(self, coordinator: ProfileCoordinator) -> None:
        assert coordinator.install_missing_plugins("nope").total == 0


@pytest.mark.unit
class TestTransfer:
    """Test export/import and marketplace installs."""

    def test_export_import_round_trip(self, coordinator: ProfileCoordinator) -> None:
        coordinator.subscribe_profile("arcade")
        coordinator.associations.set_plugin_enabled("arcade", "timer", False)

        data = coordinator.export_profile("arcade")
        assert data is not None
        assert data.plugin_configs == {"hud": {"scale": 2}}
        assert [r.plugin_id for r in data.plugin_references] == ["hud", "timer"]

        coordinator.unsubscribe_profile("arcade")
        preview = coordinator.preview_import(data)
        assert preview.missing_plugins == ["timer"]
        assert not preview.profile_exists

        result = coordinator.import_profile(data)

        assert result.is_success
        assert result.profile_id == "arcade"
        assert result.missing_plugins == ["timer"]
        assert coordinator.get_profile("arcade").defaults.opacity == 0.8
        assert coordinator.associations.get_plugin_enabled("arcade", "timer") is False
        assert (coordinator.profile_directory("arcade") / "plugins" / "hud" / "config.json").exists()
        assert [(r.plugin_id, r.added_at) for r in coordinator.associations.get_plugins_in_profile("arcade")] == [
            (r.plugin_id, r.added_at) for r in data.plugin_references
        ]

    def test_import_existing_requires_overwrite(self, coordinator: ProfileCoordinator) -> None:
        coordinator.subscribe_profile("arcade")
        data = coordinator.export_profile("arcade")
        data.plugin_references = data.plugin_references[:1]

        conflict = coordinator.import_profile(data)
        assert not conflict.is_success
        assert conflict.profile_exists

        replaced = coordinator.import_profile(data, overwrite=True)
        assert replaced.is_success
        assert [r.plugin_id for r in coordinator.associations.get_plugins_in_profile("arcade")] == ["hud"]

    def test_overwrite_import_keeps_original_plugins(self, coordinator: ProfileCoordinator) -> None:
        coordinator.subscribe_profile("arcade")
        data = coordinator.export_profile("arcade")
        data.plugin_references = data.plugin_references[:1]

        assert coordinator.import_profile(data, overwrite=True).is_success

        assert coordinator.associations.get_original_plugins("arcade") == ["hud", "timer", "ghost"]
        outcome = coordinator.install_missing_plugins("arcade")
        assert outcome.failed_ids == ["ghost"]
        assert coordinator.associations.profile_contains_plugin("arcade", "timer")

    def test_import_emits_one_batch_event(self, coordinator: ProfileCoordinator) -> None:
        coordinator.subscribe_profile("arcade")
        data = coordinator.export_profile("arcade")
        received: list[AssociationChangedEvent] = []
        coordinator.associations.changed.subscribe(received.append)

        coordinator.import_profile(data, overwrite=True)

        assert [e.change_type for e in received] == [AssociationChangeType.BATCH_ADDED]
        assert received[0].plugin_ids == ["hud", "timer"]
        assert received[0].profile_id == "arcade"

    def test_export_to_file(self, coordinator: ProfileCoordinator, tmp_path: Path) -> None:
        target = tmp_path / "out" / "arcade.json"
        coordinator.subscribe_profile("arcade")

        assert coordinator.export_profile_to_file("arcade", target) is True
        assert coordinator.export_profile_to_file("nope", tmp_path / "nope.json") is False
        assert '"profileId": "arcade"' in target.read_text(encoding="utf-8")

    def test_install_marketplace_profile(self, coordinator: ProfileCoordinator) -> None:
        listing = MarketplaceProfile(id="community", name="Community Pack", plugin_ids=["hud", "notes", "ghost"])

        result = coordinator.install_marketplace_profile(listing)

        assert result.is_success
        assert result.missing_plugins == ["notes", "ghost"]
        assert coordinator.associations.get_original_plugins("community") == ["hud", "notes", "ghost"]
        assert coordinator.store.get_subscribed_plugins("community") == ["hud", "notes"]
        assert coordinator.get_profile("community").name == "Community Pack"
        assert coordinator.install_marketplace_profile(listing).profile_exists
