"""Unit tests for SubscriptionStore."""

import json
import logging
from pathlib import Path

import pytest

from loadout_library.catalogs import PluginTemplateCatalog
from loadout_library.catalogs import ProfileTemplateCatalog
from loadout_library.subscriptions import SubscriptionStore


@pytest.mark.unit
class TestProfileSubscriptions:
    """Test subscribing and unsubscribing profiles."""

    def test_subscribe_provisions_template_and_recommended_plugins(
        self, store: SubscriptionStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Recommended plugins missing from the catalog are skipped with a warning."""
        with caplog.at_level(logging.WARNING):
            assert store.subscribe_profile("arcade") is True

        assert store.get_subscribed_profiles() == ["arcade"]
        assert store.get_subscribed_plugins("arcade") == ["hud", "timer"]
        assert (store.profile_directory("arcade") / "profile.json").exists()
        assert (store.plugin_config_directory("arcade", "hud") / "config.json").exists()
        assert any("ghost" in r.getMessage() for r in caplog.records if r.levelno == logging.WARNING)

    def test_subscribe_twice_returns_false(self, store: SubscriptionStore) -> None:
        assert store.subscribe_profile("arcade") is True
        assert store.subscribe_profile("arcade") is False
        assert store.get_subscribed_profiles() == ["arcade"]

    def test_subscribe_unknown_template(self, store: SubscriptionStore) -> None:
        assert store.subscribe_profile("nope") is False
        assert store.get_subscribed_profiles() == []
        assert not store.subscriptions_file.exists()

    def test_subscribe_uses_catalog_spelling(self, store: SubscriptionStore) -> None:
        assert store.subscribe_profile("ARCADE") is True
        assert store.is_profile_subscribed("arcade")

    def test_subscribe_rejects_blank_id(self, store: SubscriptionStore) -> None:
        assert store.subscribe_profile("  ") is False

    def test_unsubscribe_reports_plugins_and_deletes_directory(self, store: SubscriptionStore) -> None:
        store.subscribe_profile("arcade")

        result = store.unsubscribe_profile("arcade")

        assert result.success
        assert result.unsubscribed_plugins == ["hud", "timer"]
        assert not store.is_profile_subscribed("arcade")
        assert store.get_subscribed_plugins("arcade") == []
        assert not store.profile_directory("arcade").exists()

    def test_unsubscribe_not_subscribed(self, store: SubscriptionStore) -> None:
        result = store.unsubscribe_profile("arcade")
        assert not result.success
        assert "not subscribed" in (result.error_message or "")

    def test_register_profile_without_template(self, store: SubscriptionStore) -> None:
        assert store.register_profile("custom") is True
        assert store.register_profile("custom") is False
        assert store.get_subscribed_plugins("custom") == []

    def test_find_orphaned_profile_directories(self, store: SubscriptionStore) -> None:
        store.subscribe_profile("arcade")
        (store.profiles_dir / "stray").mkdir(parents=True)

        assert store.find_orphaned_profile_directories() == [store.profiles_dir / "stray"]


@pytest.mark.unit
class TestPluginSubscriptions:
    """Test per-profile plugin subscriptions."""

    def test_requires_subscribed_profile(self, store: SubscriptionStore) -> None:
        assert store.subscribe_plugin("notes", "arcade") is False

    def test_requires_catalog_plugin(self, store: SubscriptionStore) -> None:
        store.subscribe_profile("arcade")
        assert store.subscribe_plugin("ghost", "arcade") is False

    def test_subscribe_is_idempotent(self, store: SubscriptionStore) -> None:
        store.subscribe_profile("racing")
        assert store.subscribe_plugin("notes", "racing") is True
        assert store.subscribe_plugin("Notes", "racing") is True
        assert store.get_subscribed_plugins("racing") == ["hud", "notes"]

    def test_unsubscribe_deletes_plugin_config(self, store: SubscriptionStore) -> None:
        store.subscribe_profile("arcade")
        config_dir = store.plugin_config_directory("arcade", "hud")
        assert config_dir.exists()

        assert store.unsubscribe_plugin("hud", "arcade") is True

        assert not config_dir.exists()
        assert not store.is_plugin_subscribed("hud", "arcade")
        assert store.unsubscribe_plugin("hud", "arcade") is True

    def test_unsubscribe_requires_subscribed_profile(self, store: SubscriptionStore) -> None:
        assert store.unsubscribe_plugin("hud", "arcade") is False


@pytest.mark.unit
class TestPersistence:
    def test_record_survives_restart(
        self,
        store: SubscriptionStore,
        data_dir: Path,
        profile_catalog: ProfileTemplateCatalog,
        plugin_catalog: PluginTemplateCatalog,
    ) -> None:
        store.subscribe_profile("arcade")
        store.subscribe_profile("racing")

        reopened = SubscriptionStore(data_dir, profile_catalog, plugin_catalog)

        assert reopened.get_subscribed_profiles() == ["arcade", "racing"]
        assert reopened.get_subscribed_plugins("racing") == ["hud"]

    def test_file_uses_camel_case(self, store: SubscriptionStore) -> None:
        store.subscribe_profile("racing")
        raw = json.loads(store.subscriptions_file.read_text(encoding="utf-8"))
        assert raw["profiles"] == ["racing"]
        assert raw["pluginSubscriptions"] == {"racing": ["hud"]}

    def test_malformed_file_is_treated_as_empty(
        self, store: SubscriptionStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        store.subscriptions_file.parent.mkdir(parents=True, exist_ok=True)
        store.subscriptions_file.write_text("][", encoding="utf-8")

        assert store.get_subscribed_profiles() == []
        assert any("subscription" in r.getMessage() for r in caplog.records)
