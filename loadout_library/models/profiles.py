"""Profile models for loadout_library."""

from pydantic import Field

from .base import CamelCaseModel

PROFILE_FILE_NAME = "profile.json"


class ProfileActivation(CamelCaseModel):
    """Rules for switching to a profile automatically."""

    processes: list[str] = Field(default_factory=list, description="Process names that activate the profile")
    auto_switch: bool = Field(default=True, description="Whether a matching process switches automatically")


class ProfileDefaults(CamelCaseModel):
    """Default settings applied when the profile becomes active."""

    url: str | None = None
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)
    seek_seconds: int = Field(default=5, ge=0)


class Profile(CamelCaseModel):
    """A named, switchable configuration context.

    Stored as Profiles/<id>/profile.json in the user's data directory.
    """

    id: str = Field(default="default", min_length=1)
    name: str = "Default"
    icon: str = "🌐"
    version: int = 1
    activation: ProfileActivation | None = None
    defaults: ProfileDefaults | None = None
