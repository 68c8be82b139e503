"""Process-based profile activation.

A profile whose activation rules list a process name becomes the switch
target while that process is running.
"""

import logging
from collections.abc import Iterable

import psutil

from ..models.profiles import Profile

logger = logging.getLogger(__name__)


def normalize_process_name(name: str) -> str:
    """Compare process names without case and without a trailing .exe."""
    name = name.strip().casefold()
    if name.endswith(".exe"):
        name = name[: -len(".exe")]
    return name


def running_process_names() -> set[str]:
    """Names of all processes visible to the current user, normalized."""
    names = set()
    for proc in psutil.process_iter(["name"]):
        try:
            name = proc.info["name"]
            if name:
                names.add(normalize_process_name(name))
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return names


def match_profile(profiles: Iterable[Profile], process_names: Iterable[str]) -> Profile | None:
    """First profile with auto-switch enabled whose rules match a running process.

    Args:
        profiles: Candidate profiles, in priority order
        process_names: Running process names (normalized or raw)

    Returns:
        Matching profile, or None
    """
    running = {normalize_process_name(n) for n in process_names if n}
    if not running:
        return None

    for profile in profiles:
        activation = profile.activation
        if activation is None or not activation.auto_switch:
            continue
        if any(normalize_process_name(p) in running for p in activation.processes if p):
            logger.debug(f"Profile '{profile.id}' matches running processes")
            return profile
    return None
