"""Filesystem helpers for provisioning profile directories."""

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def copy_tree(source_dir: Path, target_dir: Path) -> bool:
    """Recursively copy a template directory, overwriting existing files.

    Not transactional: a failure part way leaves whatever was already copied.

    Returns:
        True if the copy completed, False if the source is missing or an I/O
        error occurred
    """
    if not source_dir.is_dir():
        logger.warning(f"Template directory does not exist: {source_dir}")
        return False

    try:
        shutil.copytree(source_dir, target_dir, dirs_exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to copy {source_dir} -> {target_dir}: {e}")
        return False

    logger.debug(f"Copied template: {source_dir} -> {target_dir}")
    return True


def remove_tree(directory: Path) -> bool:
    """Delete a directory recursively. A missing directory counts as removed."""
    if not directory.exists():
        return True
    try:
        shutil.rmtree(directory)
    except OSError as e:
        logger.error(f"Failed to delete {directory}: {e}")
        return False
    logger.debug(f"Deleted directory: {directory}")
    return True
