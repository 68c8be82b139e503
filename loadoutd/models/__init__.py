"""API models for loadoutd."""

from .requests import AddPluginsRequest
from .requests import CreateProfileRequest
from .requests import ImportProfileRequest
from .requests import SetPluginEnabledRequest
from .requests import UpdateProfileRequest
from .responses import AddPluginsResponse
from .responses import CatalogPluginResponse
from .responses import CatalogProfileResponse
from .responses import PluginEnabledResponse
from .responses import PluginRemovalResponse
from .responses import PluginUsageResponse
from .responses import ProfileResponse

__all__ = [
    "AddPluginsRequest",
    "AddPluginsResponse",
    "CatalogPluginResponse",
    "CatalogProfileResponse",
    "CreateProfileRequest",
    "ImportProfileRequest",
    "PluginEnabledResponse",
    "PluginRemovalResponse",
    "PluginUsageResponse",
    "ProfileResponse",
    "SetPluginEnabledRequest",
    "UpdateProfileRequest",
]
