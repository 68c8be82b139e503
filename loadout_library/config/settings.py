"""Settings models for loadout.

This module defines the configuration structure for the library and the
daemon that fronts it.

Contract:
- Inputs: Environment variables, YAML files
- Outputs: Validated settings objects
- Side Effects: None (read-only)
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class LoadoutSettings(BaseSettings):
    """Configuration for loadout.

    Attributes:
        host: Listen address (default: 127.0.0.1)
        port: Listen port (default: 8430)
        log_level: Logging level (default: info)
        workers: Number of workers (default: 1)
        default_profile_id: Id of the profile that can never be unsubscribed
        data_path: Per-user data root; empty means $LOADOUT_HOME/data
        builtin_path: Built-in template root; empty means $LOADOUT_HOME/builtin
        reconcile_on_start: Drop association entries of unsubscribed profiles on startup (default: True)

    Example:
        >>> settings = LoadoutSettings()
        >>> assert settings.host == "127.0.0.1"
        >>> assert settings.default_profile_id == "default"
    """

    model_config = SettingsConfigDict(
        env_prefix="LOADOUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8430
    log_level: str = "info"
    workers: int = 1

    default_profile_id: str = "default"

    data_path: str = ""
    builtin_path: str = ""

    # Startup behavior
    reconcile_on_start: bool = True

    @field_validator("data_path", "builtin_path")
    @classmethod
    def expand_and_resolve_path(cls, v: str) -> str:
        """Expand ~ and resolve to absolute path.

        Empty strings are kept so the storage path helpers can apply their
        LOADOUT_HOME based defaults.
        """
        if not v:
            return v
        return str(Path(v).expanduser().resolve())

    @field_validator("default_profile_id")
    @classmethod
    def require_profile_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("default_profile_id must not be empty")
        return v
