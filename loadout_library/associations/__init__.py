"""Profile <-> plugin association index."""

from .manager import PluginAssociationManager

__all__ = ["PluginAssociationManager"]
