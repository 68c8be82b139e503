"""Built-in template catalogs.

Each catalog is a read-only index backed by a registry.json file plus one
directory per template:

    <root>/
        registry.json     # {"version": 1, "items": [...]}
        <template-id>/    # files copied when the template is provisioned

Catalogs load lazily on first access and stay cached until reload().
"""

import logging
from pathlib import Path
from threading import RLock
from typing import ClassVar
from typing import Generic
from typing import TypeVar

from pydantic import ValidationError

from ..models.catalogs import CATALOG_FILE_NAME
from ..models.catalogs import PluginTemplateInfo
from ..models.catalogs import ProfileTemplateInfo
from ..storage.json_store import load_json

logger = logging.getLogger(__name__)

TemplateT = TypeVar("TemplateT", ProfileTemplateInfo, PluginTemplateInfo)


class TemplateCatalog(Generic[TemplateT]):
    """Lazily loaded, cached index of built-in templates.

    A missing or malformed registry.json yields an empty catalog and a
    warning; the application must still start with zero templates.
    """

    item_model: ClassVar[type]
    legacy_items_key: ClassVar[str]
    kind: ClassVar[str] = "template"

    def __init__(self, root_dir: Path) -> None:
        self.root_dir = Path(root_dir)
        self.registry_file = self.root_dir / CATALOG_FILE_NAME
        self._items: list[TemplateT] | None = None
        self._lock = RLock()

    def _load(self) -> list[TemplateT]:
        data = load_json(self.registry_file)
        if data is None:
            logger.warning(f"No usable {self.kind} catalog at {self.registry_file}, catalog is empty")
            return []

        raw_items = data.get("items")
        if raw_items is None:
            raw_items = data.get(self.legacy_items_key)
        if not isinstance(raw_items, list):
            logger.warning(f"{self.registry_file} has no item list, {self.kind} catalog is empty")
            return []

        items: list[TemplateT] = []
        seen: set[str] = set()
        for raw in raw_items:
            try:
                item = self.item_model.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping invalid {self.kind} entry in {self.registry_file}: {e.error_count()} error(s)")
                continue
            key = item.id.casefold()
            if key in seen:
                logger.warning(f"Skipping duplicate {self.kind} id '{item.id}' in {self.registry_file}")
                continue
            seen.add(key)
            items.append(item)

        logger.info(f"Loaded {len(items)} {self.kind} template(s) from {self.registry_file}")
        return items

    def _ensure_loaded(self) -> list[TemplateT]:
        with self._lock:
            if self._items is None:
                self._items = self._load()
            return self._items

    def reload(self) -> None:
        """Force the catalog file to be re-read."""
        with self._lock:
            self._items = self._load()

    def get_all(self) -> list[TemplateT]:
        return list(self._ensure_loaded())

    def get(self, template_id: str) -> TemplateT | None:
        if not template_id:
            return None
        key = template_id.casefold()
        for item in self._ensure_loaded():
            if item.id.casefold() == key:
                return item
        return None

    def exists(self, template_id: str) -> bool:
        return self.get(template_id) is not None

    def template_directory(self, template_id: str) -> Path:
        """Directory holding the template's files.

        Uses the catalog's spelling of the id when the template is known.
        """
        item = self.get(template_id)
        return self.root_dir / (item.id if item else template_id)


class ProfileTemplateCatalog(TemplateCatalog[ProfileTemplateInfo]):
    """Catalog of built-in profile templates."""

    item_model = ProfileTemplateInfo
    legacy_items_key = "profiles"
    kind = "profile"


class PluginTemplateCatalog(TemplateCatalog[PluginTemplateInfo]):
    """Catalog of built-in plugin templates."""

    item_model = PluginTemplateInfo
    legacy_items_key = "plugins"
    kind = "plugin"

    def get_recommended_for(self, profile_id: str) -> list[PluginTemplateInfo]:
        key = profile_id.casefold()
        return [p for p in self.get_all() if any(pid.casefold() == key for pid in p.profiles)]
