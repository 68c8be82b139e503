"""Request models for loadoutd API.

Pydantic models for validating incoming API requests.
"""

from pydantic import Field

from loadout_library.models import CamelCaseModel
from loadout_library.models import ProfileExportData


class CreateProfileRequest(CamelCaseModel):
    """Request to create a profile without a built-in template.

    Attributes:
        id: Profile id, also the directory name
        name: Display name
        icon: Optional icon
        plugin_ids: Plugins to reference from the new profile
    """

    id: str = Field(..., min_length=1, pattern=r"^[^/\\]+$", description="Profile id")
    name: str = Field(default="", description="Display name")
    icon: str | None = Field(default=None, description="Optional icon")
    plugin_ids: list[str] = Field(default_factory=list, description="Plugins to reference")


class UpdateProfileRequest(CamelCaseModel):
    """Request to rename a profile or change its icon."""

    name: str | None = Field(default=None, description="New display name")
    icon: str | None = Field(default=None, description="New icon")


class AddPluginsRequest(CamelCaseModel):
    """Request to reference one or more plugins from a profile."""

    plugin_ids: list[str] = Field(..., min_length=1, description="Plugin ids to add")


class SetPluginEnabledRequest(CamelCaseModel):
    enabled: bool = Field(..., description="Whether the plugin loads with the profile")


class ImportProfileRequest(CamelCaseModel):
    """Request to import an exported profile.

    Attributes:
        data: Export document
        overwrite: Replace an existing profile with the same id
    """

    data: ProfileExportData
    overwrite: bool = Field(default=False, description="Replace an existing profile")
