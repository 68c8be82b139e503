"""Outcome models returned by store and coordinator operations."""

from pydantic import Field

from .base import CamelCaseModel


class UnsubscribeResult(CamelCaseModel):
    """Outcome of unsubscribing a profile.

    unsubscribed_plugins lists the plugins that were subscribed to the
    profile, for caller-side cleanup.
    """

    success: bool
    error_message: str | None = None
    unsubscribed_plugins: list[str] = Field(default_factory=list)

    @classmethod
    def succeeded(cls, unsubscribed_plugins: list[str] | None = None) -> "UnsubscribeResult":
        return cls(success=True, unsubscribed_plugins=unsubscribed_plugins or [])

    @classmethod
    def failed(cls, error_message: str) -> "UnsubscribeResult":
        return cls(success=False, error_message=error_message)


class InstallResult(CamelCaseModel):
    """Outcome reported by a plugin library install call."""

    is_success: bool
    error_message: str | None = None


class BatchOutcome(CamelCaseModel):
    """Per-item counts for multi-item operations ("N succeeded, M failed")."""

    succeeded: int = 0
    failed: int = 0
    failed_ids: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    def record(self, item_id: str, ok: bool) -> None:
        if ok:
            self.succeeded += 1
        else:
            self.failed += 1
            self.failed_ids.append(item_id)


class ProfileImportResult(CamelCaseModel):
    """Outcome (or preview) of importing an exported profile."""

    is_success: bool
    error_message: str | None = None
    profile_id: str | None = None
    missing_plugins: list[str] = Field(default_factory=list)
    profile_exists: bool = False

    @classmethod
    def success(cls, profile_id: str, missing_plugins: list[str] | None = None) -> "ProfileImportResult":
        return cls(is_success=True, profile_id=profile_id, missing_plugins=missing_plugins or [])

    @classmethod
    def failure(cls, error_message: str) -> "ProfileImportResult":
        return cls(is_success=False, error_message=error_message)

    @classmethod
    def exists(cls, profile_id: str) -> "ProfileImportResult":
        return cls(
            is_success=False,
            profile_id=profile_id,
            profile_exists=True,
            error_message=f"Profile '{profile_id}' already exists",
        )
