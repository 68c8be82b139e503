"""Profile export/import and marketplace models."""

from datetime import UTC
from datetime import datetime
from typing import Any

from pydantic import Field

from .associations import PluginReferenceEntry
from .base import CamelCaseModel
from .profiles import Profile


class ProfileExportData(CamelCaseModel):
    """A profile packaged for sharing.

    plugin_configs maps a plugin id to the parsed config.json of that plugin's
    instance directory inside the profile.
    """

    version: int = 1
    profile_id: str = Field(min_length=1)
    profile_name: str = ""
    profile_config: Profile = Field(default_factory=Profile)
    plugin_references: list[PluginReferenceEntry] = Field(default_factory=list)
    plugin_configs: dict[str, dict[str, Any]] = Field(default_factory=dict)
    exported_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class MarketplaceProfile(CamelCaseModel):
    """An externally curated profile listing.

    Fetching remote catalogs is out of scope; callers hand in already parsed
    listings.
    """

    id: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    author: str = ""
    target_game: str = ""
    version: str = "1.0.0"
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    plugin_ids: list[str] = Field(default_factory=list)
    source_url: str = ""
    download_url: str = ""

    @property
    def plugin_count(self) -> int:
        return len(self.plugin_ids)
