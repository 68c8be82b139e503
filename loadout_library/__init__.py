"""Loadout library layer.

This is the business logic layer that sits between loadoutd (transport)
and the plugin host and plugin library that actually run and install
plugin code.

Public Interface:
    Modules:
    - storage: JSON-based persistence and path resolution
    - config: Configuration loading
    - models: Shared data structures
    - catalogs: Built-in profile and plugin templates
    - subscriptions: Subscribed profiles and plugins
    - associations: Profile <-> plugin reference index
    - profiles: Active profile coordination, import/export
"""

# Re-export key types for convenience
from .associations import PluginAssociationManager
from .catalogs import PluginTemplateCatalog
from .catalogs import ProfileTemplateCatalog
from .profiles import ProfileCoordinator
from .subscriptions import SubscriptionStore

__all__ = [
    "PluginAssociationManager",
    "PluginTemplateCatalog",
    "ProfileCoordinator",
    "ProfileTemplateCatalog",
    "SubscriptionStore",
]
