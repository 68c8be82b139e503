"""Storage module for loadout_library.

Provides JSON-based persistence with atomic writes and path resolution.

Public Interface:
    - save_json / load_json: Raw JSON persistence
    - save_model / load_model: Pydantic model persistence
    - get_home_dir: Get LOADOUT_HOME
    - get_config_dir: Get config directory
    - get_data_dir: Get per-user data directory
    - get_builtin_dir: Get built-in template root
"""

from .json_store import load_json
from .json_store import load_model
from .json_store import save_json
from .json_store import save_model
from .paths import get_builtin_dir
from .paths import get_config_dir
from .paths import get_data_dir
from .paths import get_home_dir

__all__ = [
    "save_json",
    "load_json",
    "save_model",
    "load_model",
    "get_home_dir",
    "get_config_dir",
    "get_data_dir",
    "get_builtin_dir",
]
