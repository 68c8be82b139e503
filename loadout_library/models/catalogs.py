"""Built-in template catalog models."""

from pydantic import Field

from .base import CamelCaseModel

CATALOG_FILE_NAME = "registry.json"


class ProfileTemplateInfo(CamelCaseModel):
    """Built-in profile template entry."""

    id: str = Field(min_length=1)
    name: str = ""
    icon: str = ""
    description: str = ""
    recommended_plugins: list[str] = Field(default_factory=list)


class PluginTemplateInfo(CamelCaseModel):
    """Built-in plugin template entry."""

    id: str = Field(min_length=1)
    name: str = ""
    version: str = ""
    author: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)
    profiles: list[str] = Field(default_factory=list, description="Profiles this plugin is recommended for")
