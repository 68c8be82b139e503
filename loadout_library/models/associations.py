"""Association index models.

The association index is the aggregate root that records which plugins each
profile references, plus the plugin list each profile was originally
provisioned with.
"""

from datetime import UTC
from datetime import datetime
from enum import StrEnum

from pydantic import Field

from .base import CamelCaseModel


class PluginInstallStatus(StrEnum):
    """Resolved installation status of a plugin reference."""

    INSTALLED = "installed"
    MISSING = "missing"
    DISABLED = "disabled"


def resolve_status(enabled: bool, installed: bool) -> PluginInstallStatus:
    """Derive the status of a reference from its flag and the library's truth.

    A disabled reference is DISABLED whether or not the plugin is installed.
    """
    if not enabled:
        return PluginInstallStatus.DISABLED
    if not installed:
        return PluginInstallStatus.MISSING
    return PluginInstallStatus.INSTALLED


def _now() -> datetime:
    return datetime.now(UTC)


class PluginReferenceEntry(CamelCaseModel):
    """Persisted plugin reference inside associations.json."""

    plugin_id: str = Field(min_length=1)
    enabled: bool = True
    added_at: datetime = Field(default_factory=_now)

    def to_reference(self, status: PluginInstallStatus) -> "PluginReference":
        return PluginReference(
            plugin_id=self.plugin_id,
            enabled=self.enabled,
            added_at=self.added_at,
            status=status,
        )


class PluginReference(PluginReferenceEntry):
    """Plugin reference annotated with its resolved installation status.

    The status is computed at read time and never written to disk.
    """

    status: PluginInstallStatus = PluginInstallStatus.INSTALLED


class AssociationIndex(CamelCaseModel):
    """Contents of associations.json.

    A profile key mapped to an empty list is a retained entry ("associated but
    currently empty"), distinct from a profile that was never associated.
    """

    version: int = 1
    profile_plugins: dict[str, list[PluginReferenceEntry]] = Field(default_factory=dict)
    original_plugins: dict[str, list[str]] = Field(default_factory=dict)
