"""Active profile coordination, activation rules and profile transfer."""

from .activation import match_profile
from .activation import running_process_names
from .coordinator import DEFAULT_PROFILE_ID
from .coordinator import ProfileCoordinator
from .transfer import load_export
from .transfer import parse_export
from .transfer import save_export

__all__ = [
    "DEFAULT_PROFILE_ID",
    "ProfileCoordinator",
    "load_export",
    "match_profile",
    "parse_export",
    "running_process_names",
    "save_export",
]
