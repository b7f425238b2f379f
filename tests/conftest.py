"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from runtime_updater.adapters.base import VersionManagerAdapter
from runtime_updater.errors import (
    CloneError,
    InstallError,
    SwitchError,
    ToolQueryError,
    UninstallError,
    UpdaterError,
)
from runtime_updater.models import InstalledSet


class FakeAdapter(VersionManagerAdapter):
    """In-memory version manager that records every call it receives."""

    name = "fake"
    runtime = "Fake"
    version_prefix = "v"

    def __init__(
        self,
        installed: list[str],
        active: str | None,
        available: str,
        latest: str | None = None,
        fail_on: Iterable[str] = (),
    ) -> None:
        super().__init__("fake")
        self.installed = list(installed)
        self.active = active
        self.available = available
        self.latest = latest or installed[-1]
        self.fail_on = set(fail_on)
        self.calls: list[tuple[str, ...]] = []

    def _record(self, op: str, *args: str, error: type[UpdaterError]) -> None:
        self.calls.append((op, *args))
        if op in self.fail_on:
            raise error(f"{op} {' '.join(args)} failed.")

    @property
    def mutations(self) -> list[tuple[str, ...]]:
        """Calls that change state, in order."""
        queries = {"list_installed", "latest_available"}
        return [c for c in self.calls if c[0] not in queries]

    def list_installed(self) -> InstalledSet:
        self._record("list_installed", error=ToolQueryError)
        return InstalledSet(
            versions=list(self.installed), latest=self.latest, active=self.active
        )

    def latest_available(self) -> str:
        self._record("latest_available", error=ToolQueryError)
        return self.available

    def install(self, version: str) -> None:
        self._record("install", version, error=InstallError)
        self.installed.append(version)
        self.latest = version

    def uninstall(self, version: str) -> None:
        self._record("uninstall", version, error=UninstallError)
        self.installed.remove(version)

    def switch_active(self, version: str) -> None:
        self._record("switch_active", version, error=SwitchError)
        self.active = version

    def clone_libraries(self, old_version: str, new_version: str) -> None:
        self._record("clone_libraries", old_version, new_version, error=CloneError)


@pytest.fixture
def make_adapter() -> Callable[..., FakeAdapter]:
    """Factory for FakeAdapter instances."""
    return FakeAdapter


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Create a temporary config.toml."""
    content = """\
log_level = "debug"
lock_dir = "/var/tmp/updater-locks"

[perlbrew]
executable = "/opt/perlbrew/bin/perlbrew"

[rbenv]
executable = "/usr/local/bin/rbenv"
"""
    path = tmp_path / "config.toml"
    path.write_text(content)
    return path
