"""Subscription record model (subscriptions.json)."""

from pydantic import Field

from .base import CamelCaseModel


class SubscriptionConfig(CamelCaseModel):
    """Subscribed profiles and, per profile, subscribed plugins.

    Identifiers are compared exactly, as written by the template catalogs.
    """

    version: int = 1
    profiles: list[str] = Field(default_factory=list)
    plugin_subscriptions: dict[str, list[str]] = Field(default_factory=dict)

    def is_profile_subscribed(self, profile_id: str) -> bool:
        return bool(profile_id) and profile_id in self.profiles

    def add_profile(self, profile_id: str) -> bool:
        if not profile_id or profile_id in self.profiles:
            return False
        self.profiles.append(profile_id)
        self.plugin_subscriptions.setdefault(profile_id, [])
        return True

    def remove_profile(self, profile_id: str) -> bool:
        if not profile_id or profile_id not in self.profiles:
            return False
        self.profiles.remove(profile_id)
        self.plugin_subscriptions.pop(profile_id, None)
        return True

    def get_subscribed_plugins(self, profile_id: str) -> list[str]:
        return list(self.plugin_subscriptions.get(profile_id, []))

    def is_plugin_subscribed(self, plugin_id: str, profile_id: str) -> bool:
        return plugin_id in self.plugin_subscriptions.get(profile_id, [])

    def add_plugin(self, plugin_id: str, profile_id: str) -> bool:
        if not plugin_id or not profile_id:
            return False
        plugins = self.plugin_subscriptions.setdefault(profile_id, [])
        if plugin_id in plugins:
            return False
        plugins.append(plugin_id)
        return True

    def remove_plugin(self, plugin_id: str, profile_id: str) -> bool:
        plugins = self.plugin_subscriptions.get(profile_id)
        if not plugins or plugin_id not in plugins:
            return False
        plugins.remove(plugin_id)
        return True
