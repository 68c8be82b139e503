"""JSON persistence helpers with atomic writes.

Every persisted file in loadout goes through these helpers so that a crash
mid-write never leaves a truncated file behind.
"""

import json
import logging
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def save_json(path: Path, data: dict) -> None:
    """Save dict as JSON file atomically.

    Args:
        path: Target file path
        data: Dictionary to save as JSON

    Raises:
        OSError: If the file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    temp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str, ensure_ascii=False)
        temp_path.replace(path)
        logger.debug(f"Saved JSON to {path}")
    except OSError:
        if temp_path.exists():
            temp_path.unlink()
        raise


def load_json(path: Path) -> dict | None:
    """Load JSON file or return None if absent or malformed.

    Args:
        path: File path to load

    Returns:
        Dictionary from JSON file, or None if the file doesn't exist or
        doesn't hold a JSON object
    """
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to load JSON from {path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Ignoring {path}: expected a JSON object, got {type(data).__name__}")
        return None
    return data


def save_model(path: Path, model: BaseModel) -> None:
    """Save a pydantic model as camelCase JSON atomically.

    Raises:
        OSError: If the file cannot be written
    """
    save_json(path, model.model_dump(mode="json", by_alias=True))


def load_model(path: Path, model_type: type[ModelT]) -> ModelT | None:
    """Load a pydantic model from JSON.

    A missing, unreadable or structurally invalid file yields None so callers
    can fall back to an empty default.
    """
    data = load_json(path)
    if data is None:
        return None
    try:
        return model_type.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Invalid {model_type.__name__} data in {path}: {e.error_count()} error(s)")
        return None
