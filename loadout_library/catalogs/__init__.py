"""Read-only catalogs of built-in profile and plugin templates."""

from .registry import PluginTemplateCatalog
from .registry import ProfileTemplateCatalog
from .registry import TemplateCatalog

__all__ = [
    "PluginTemplateCatalog",
    "ProfileTemplateCatalog",
    "TemplateCatalog",
]
