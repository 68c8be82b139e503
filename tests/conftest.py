"""
Shared pytest fixtures for loadout test suite.

Provides fixtures for:
- Temporary storage directories and LOADOUT_HOME isolation
- Built-in profile/plugin catalogs seeded on disk
- Fake plugin library and recording plugin host
- Wired stores and coordinator
"""

import json
import tempfile
from collections.abc import Callable
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from loadout_library.associations import PluginAssociationManager
from loadout_library.catalogs import PluginTemplateCatalog
from loadout_library.catalogs import ProfileTemplateCatalog
from loadout_library.models import InstallResult
from loadout_library.profiles import ProfileCoordinator
from loadout_library.subscriptions import SubscriptionStore

PROFILE_TEMPLATES: list[dict[str, Any]] = [
    {"id": "default", "name": "Default", "icon": "🌐", "recommendedPlugins": []},
    {
        "id": "arcade",
        "name": "Arcade",
        "icon": "🕹",
        "description": "Cabinet overlays",
        "recommendedPlugins": ["hud", "timer", "ghost"],
    },
    {"id": "racing", "name": "Racing", "recommendedPlugins": ["hud"]},
]

PLUGIN_TEMPLATES: list[dict[str, Any]] = [
    {"id": "hud", "name": "HUD", "version": "1.0.0", "author": "loadout", "profiles": ["arcade", "racing"]},
    {"id": "timer", "name": "Timer", "version": "0.2.0", "profiles": ["arcade"]},
    {"id": "notes", "name": "Notes", "version": "1.1.0", "tags": ["text"]},
]

PROFILE_FILES: dict[str, dict[str, Any]] = {
    "default": {"id": "default", "name": "Default", "icon": "🌐", "version": 1},
    "arcade": {
        "id": "arcade",
        "name": "Arcade",
        "icon": "🕹",
        "version": 1,
        "activation": {"processes": ["arcade.exe"], "autoSwitch": True},
        "defaults": {"url": "https://example.com/arcade", "opacity": 0.8, "seekSeconds": 10},
    },
    "racing": {
        "id": "racing",
        "name": "Racing",
        "version": 1,
        "activation": {"processes": ["racer"], "autoSwitch": False},
    },
}


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


def seed_builtin(root: Path, include_default: bool = True) -> Path:
    """Write built-in profile and plugin catalogs under root."""
    profiles = [p for p in PROFILE_TEMPLATES if include_default or p["id"] != "default"]
    _write_json(root / "profiles" / "registry.json", {"version": 1, "items": profiles})
    for template in profiles:
        _write_json(root / "profiles" / template["id"] / "profile.json", PROFILE_FILES[template["id"]])
    _write_json(root / "profiles" / "arcade" / "plugins" / "hud" / "config.json", {"scale": 2})

    _write_json(root / "plugins" / "registry.json", {"version": 1, "items": PLUGIN_TEMPLATES})
    for template in PLUGIN_TEMPLATES:
        main = root / "plugins" / template["id"] / "main.js"
        main.parent.mkdir(parents=True, exist_ok=True)
        main.write_text(f"// {template['id']}\n", encoding="utf-8")
    return root


class FakePluginLibrary:
    """In-memory plugin library.

    Args:
        installed: Plugin ids that start out installed
        failing: Plugin ids whose installation fails
    """

    def __init__(self, installed: tuple[str, ...] = (), failing: tuple[str, ...] = ()) -> None:
        self.installed = {p.casefold() for p in installed}
        self.failing = {p.casefold() for p in failing}
        self.install_calls: list[str] = []

    def is_installed(self, plugin_id: str) -> bool:
        return plugin_id.casefold() in self.installed

    def install_plugin(self, plugin_id: str) -> InstallResult:
        self.install_calls.append(plugin_id)
        if plugin_id.casefold() in self.failing:
            return InstallResult(is_success=False, error_message=f"cannot install {plugin_id}")
        self.installed.add(plugin_id.casefold())
        return InstallResult(is_success=True)

    def get_manifest(self, plugin_id: str) -> dict[str, Any] | None:
        return {"id": plugin_id} if self.is_installed(plugin_id) else None


class RecordingPluginHost:
    """Plugin host that records calls in order.

    Args:
        on_load: Called during load_plugins_for_profile; results land in seen_during_load
    """

    def __init__(self, on_load: Callable[[], Any] | None = None) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.fail_unload = False
        self.on_load = on_load
        self.seen_during_load: list[Any] = []

    def unload_all_plugins(self) -> None:
        if self.fail_unload:
            raise RuntimeError("host is busy")
        self.calls.append(("unload_all_plugins",))

    def load_plugins_for_profile(self, profile_id: str) -> None:
        self.calls.append(("load_plugins_for_profile", profile_id))
        if self.on_load is not None:
            self.seen_during_load.append(self.on_load())

    def broadcast_event(self, name: str, payload: dict[str, Any]) -> None:
        self.calls.append(("broadcast_event", name, payload))


@pytest.fixture
def temp_storage_dir() -> Generator[Path, None, None]:
    """Create temporary storage directory for tests.

    Automatically cleaned up after test completes.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_storage_env(temp_storage_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point LOADOUT_HOME at a temp directory.

    Returns:
        Path to temporary home directory
    """
    for var in ("LOADOUT_DATA_DIR", "LOADOUT_BUILTIN_DIR", "LOADOUT_CONFIG_DIR"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("LOADOUT_HOME", str(temp_storage_dir))
    return temp_storage_dir


@pytest.fixture
def builtin_dir(tmp_path: Path) -> Path:
    """Built-in templates including a default profile template."""
    return seed_builtin(tmp_path / "builtin")


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def profile_catalog(builtin_dir: Path) -> ProfileTemplateCatalog:
    return ProfileTemplateCatalog(builtin_dir / "profiles")


@pytest.fixture
def plugin_catalog(builtin_dir: Path) -> PluginTemplateCatalog:
    return PluginTemplateCatalog(builtin_dir / "plugins")


@pytest.fixture
def plugin_library() -> FakePluginLibrary:
    """Library with only 'hud' installed; 'ghost' can never be installed."""
    return FakePluginLibrary(installed=("hud",), failing=("ghost",))


@pytest.fixture
def plugin_host() -> RecordingPluginHost:
    return RecordingPluginHost()


@pytest.fixture
def store(
    data_dir: Path, profile_catalog: ProfileTemplateCatalog, plugin_catalog: PluginTemplateCatalog
) -> SubscriptionStore:
    return SubscriptionStore(data_dir, profile_catalog, plugin_catalog)


@pytest.fixture
def associations(data_dir: Path, plugin_library: FakePluginLibrary) -> PluginAssociationManager:
    return PluginAssociationManager(data_dir / "associations.json", plugin_library)


@pytest.fixture
def coordinator(
    store: SubscriptionStore,
    associations: PluginAssociationManager,
    profile_catalog: ProfileTemplateCatalog,
    plugin_catalog: PluginTemplateCatalog,
    plugin_library: FakePluginLibrary,
    plugin_host: RecordingPluginHost,
) -> ProfileCoordinator:
    """Initialized coordinator; the default profile is current."""
    coordinator = ProfileCoordinator(
        store=store,
        associations=associations,
        profile_catalog=profile_catalog,
        plugin_catalog=plugin_catalog,
        plugin_library=plugin_library,
        plugin_host=plugin_host,
    )
    coordinator.initialize()
    return coordinator


@pytest.fixture
def builtin_dir_without_default(tmp_path: Path) -> Path:
    """Built-in templates with no default profile template."""
    return seed_builtin(tmp_path / "builtin-nodefault", include_default=False)


@pytest.fixture
def seeded_home(mock_storage_env: Path) -> Path:
    """LOADOUT_HOME with built-in templates in its default location."""
    seed_builtin(mock_storage_env / "builtin")
    return mock_storage_env
