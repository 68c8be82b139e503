"""Change notification models.

Delivered to listeners registered on an EventChannel after the change has
been persisted.
"""

from datetime import UTC
from datetime import datetime
from enum import StrEnum
from typing import Literal

from pydantic import Field

from .base import CamelCaseModel


class AssociationChangeType(StrEnum):
    ADDED = "added"
    REMOVED = "removed"
    BATCH_ADDED = "batchAdded"
    BATCH_REMOVED = "batchRemoved"
    ENABLED_CHANGED = "enabledChanged"


class StoreEvent(CamelCaseModel):
    """Base model for store change events."""

    event_type: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class AssociationChangedEvent(StoreEvent):
    """Emitted when the association index changes.

    Single-pair changes fill plugin_id and profile_id. Batch changes fill
    plugin_ids (one profile, many plugins) or profile_ids (one plugin, many
    profiles) with only the pairings that actually changed.
    """

    event_type: Literal["association:changed"] = "association:changed"
    change_type: AssociationChangeType
    plugin_id: str = ""
    profile_id: str = ""
    plugin_ids: list[str] | None = None
    profile_ids: list[str] | None = None


class ProfileChangedEvent(StoreEvent):
    """Emitted after the active profile has switched."""

    event_type: Literal["profile:changed"] = "profile:changed"
    profile_id: str
    previous_profile_id: str | None = None
