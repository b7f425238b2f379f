"""Data models for runtime-updater.

These Pydantic models represent the state passed between the version
manager adapters, the cleanup policy and the upgrade coordinator. None of
them are persisted; each is created and consumed within a single run.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from .errors import SUCCESS, UpdaterError


class InstalledSet(BaseModel):
    """Versions installed under a version manager.

    Attributes:
        versions: Installed version strings, in the order the tool reports them.
        latest: The newest installed version, as ordered by the adapter.
        active: The version currently selected, or None when the tool points
                at something it does not manage (e.g. the system runtime).
    """

    versions: list[str]
    latest: str
    active: str | None = None

    @model_validator(mode="after")
    def _check_membership(self) -> InstalledSet:
        if self.latest not in self.versions:
            raise ValueError(f"latest version {self.latest!r} is not installed")
        if self.active is not None and self.active not in self.versions:
            raise ValueError(f"active version {self.active!r} is not installed")
        return self

    def __contains__(self, version: object) -> bool:
        return version in self.versions


class UpgradePlan(BaseModel):
    """What a run intends to do before touching any cleanup.

    Attributes:
        old_version: Latest installed version when the run started.
        new_version: Latest stable version the tool can install.
        needs_install: True when new_version must be installed (and libraries
                       cloned into it).
    """

    old_version: str
    new_version: str
    needs_install: bool

    @property
    def is_upgrade(self) -> bool:
        return self.old_version != self.new_version


class CleanupDecision(BaseModel):
    """Outcome of the cleanup policy.

    Attributes:
        switch_to: Version to make active, if any.
        versions_to_remove: Versions to uninstall, in order, once the switch
                            (if any) has succeeded.
    """

    switch_to: str | None = None
    versions_to_remove: list[str] = Field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return self.switch_to is None and not self.versions_to_remove


class ExitOutcome(BaseModel):
    """Result of a coordinator run, mapped directly to the process exit."""

    manager: str
    exit_code: int = SUCCESS
    error_kind: str | None = None
    message: str | None = None
    installed: str | None = None
    switched_to: str | None = None
    removed: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.exit_code == SUCCESS

    def fail(self, error: UpdaterError) -> ExitOutcome:
        """Record the first failure of the run and return self."""
        self.exit_code = error.exit_code
        self.error_kind = type(error).__name__
        self.message = str(error)
        return self
