"""Shared data structures for loadout_library."""

from .associations import AssociationIndex
from .associations import PluginInstallStatus
from .associations import PluginReference
from .associations import PluginReferenceEntry
from .associations import resolve_status
from .base import CamelCaseModel
from .catalogs import PluginTemplateInfo
from .catalogs import ProfileTemplateInfo
from .events import AssociationChangedEvent
from .events import AssociationChangeType
from .events import ProfileChangedEvent
from .profiles import Profile
from .profiles import ProfileActivation
from .profiles import ProfileDefaults
from .results import BatchOutcome
from .results import InstallResult
from .results import ProfileImportResult
from .results import UnsubscribeResult
from .subscriptions import SubscriptionConfig
from .transfer import MarketplaceProfile
from .transfer import ProfileExportData

__all__ = [
    "AssociationChangeType",
    "AssociationChangedEvent",
    "AssociationIndex",
    "BatchOutcome",
    "CamelCaseModel",
    "InstallResult",
    "MarketplaceProfile",
    "PluginInstallStatus",
    "PluginReference",
    "PluginReferenceEntry",
    "PluginTemplateInfo",
    "Profile",
    "ProfileActivation",
    "ProfileChangedEvent",
    "ProfileDefaults",
    "ProfileExportData",
    "ProfileImportResult",
    "ProfileTemplateInfo",
    "SubscriptionConfig",
    "UnsubscribeResult",
    "resolve_status",
]
