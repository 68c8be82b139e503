"""Response models for loadoutd API.

Pydantic models for API responses.
"""

from pydantic import Field

from loadout_library.models import CamelCaseModel
from loadout_library.models import PluginTemplateInfo
from loadout_library.models import Profile
from loadout_library.models import ProfileTemplateInfo


class ProfileResponse(CamelCaseModel):
    """A subscribed profile as seen by UI layers.

    Attributes:
        profile: Profile configuration
        is_current: Whether this is the active profile
        plugin_count: Number of plugin references
    """

    profile: Profile
    is_current: bool = Field(default=False, description="Whether this is the active profile")
    plugin_count: int = Field(default=0, description="Number of plugin references")


class AddPluginsResponse(CamelCaseModel):
    profile_id: str
    added: int = Field(..., description="Number of references created")


class PluginEnabledResponse(CamelCaseModel):
    profile_id: str
    plugin_id: str
    enabled: bool


class PluginUsageResponse(CamelCaseModel):
    """Which profiles reference a plugin."""

    plugin_id: str
    installed: bool
    profile_ids: list[str] = Field(default_factory=list)


class PluginRemovalResponse(CamelCaseModel):
    """Outcome of removing a plugin everywhere.

    Attributes:
        plugin_id: Removed plugin
        removed_from: Number of profiles that lost a reference
        uninstalled: Whether plugin files were deleted from the library
    """

    plugin_id: str
    removed_from: int
    uninstalled: bool


class CatalogProfileResponse(ProfileTemplateInfo):
    subscribed: bool = False


class CatalogPluginResponse(PluginTemplateInfo):
    installed: bool = False
