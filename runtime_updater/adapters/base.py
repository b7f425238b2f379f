"""Base adapter interface for version managers.

An adapter hides everything tool-specific about one version manager: the
command lines it runs, how it parses their output and what "stable" means
for that ecosystem. The coordinator only ever sees VersionString tokens and
the error kinds raised here.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from ..errors import ManagerUpgradeError, ToolQueryError, UpdaterError
from ..models import InstalledSet
from ..shell import ToolNotFound, run
from ..versions import parse_version


class VersionManagerAdapter(ABC):
    """Capability interface over an external version management tool.

    Attributes:
        name: Short identifier, used for the run lock and in messages.
        runtime: Human readable runtime name ("Perl", "Ruby", ...).
        executable: Path or command name of the tool.
        version_prefix: Prefix the tool puts before version numbers
                        ("perl-"), ignored when ordering versions.
    """

    name: str = ""
    runtime: str = ""
    version_prefix: str = ""

    def __init__(self, executable: str) -> None:
        self.executable = executable

    @abstractmethod
    def list_installed(self) -> InstalledSet:
        """Return installed versions with the latest and active ones marked.

        Raises:
            ToolQueryError: If the tool fails or reports nothing usable.
        """

    @abstractmethod
    def latest_available(self) -> str:
        """Return the newest stable version the tool can install.

        Raises:
            ToolQueryError: If the tool fails or lists no stable version.
        """

    @abstractmethod
    def install(self, version: str) -> None:
        """Raises InstallError on failure."""

    @abstractmethod
    def uninstall(self, version: str) -> None:
        """Raises UninstallError on failure."""

    @abstractmethod
    def switch_active(self, version: str) -> None:
        """Raises SwitchError on failure."""

    @abstractmethod
    def clone_libraries(self, old_version: str, new_version: str) -> None:
        """Copy installed libraries from old_version into new_version.

        Raises:
            CloneError: If listing or installing the libraries fails.
        """

    def is_newer(self, candidate: str, current: str) -> bool:
        """True when candidate orders strictly above current."""
        return parse_version(candidate, self.version_prefix) > parse_version(
            current, self.version_prefix
        )

    def self_upgrade(self) -> None:
        """Upgrade the version manager itself. No-op unless overridden.

        Raises:
            ManagerUpgradeError: If the upgrade fails.
        """

    def purge_build_artifacts(self) -> None:
        """Remove build leftovers before cleanup. No-op unless overridden.

        Raises:
            ManagerUpgradeError: If the tool reports a failure.
        """

    # -- helpers for subclasses ---------------------------------------------

    def _query(
        self,
        *args: str,
        error: type[UpdaterError] = ToolQueryError,
        env: dict[str, str] | None = None,
    ) -> str:
        """Run the tool and return its stdout, raising `error` on failure."""
        command = " ".join((self.executable, *args))
        try:
            result = run(self.executable, *args, check=False, capture=True, env=env)
        except ToolNotFound as exc:
            raise error(f"Cannot run {command}: {exc}") from exc
        if result.returncode != 0:
            raise error(f"{command} exited with status {result.returncode}.")
        return result.stdout

    def _call(
        self,
        *args: str,
        error: type[UpdaterError],
        message: str,
        env: dict[str, str] | None = None,
    ) -> None:
        """Run the tool with output streaming to the terminal.

        Raises:
            error: With `message` if the tool cannot start or exits non-zero.
        """
        try:
            result = run(self.executable, *args, check=False, env=env)
        except ToolNotFound as exc:
            raise error(f"{message} ({exc})") from exc
        if result.returncode != 0:
            raise error(message)

    def _maintenance(self, *args: str, message: str) -> None:
        self._call(*args, error=ManagerUpgradeError, message=message)


def parse_marked_listing(
    output: str, pattern: re.Pattern[str]
) -> tuple[list[str], str | None]:
    """Parse a "versions" listing where the active entry is starred.

    Each line is matched against `pattern`, which must define a `marker`
    group (the "*" of the active line) and a `version` group. Lines that do
    not match (system runtimes, virtualenvs, aliases) are skipped.

    Returns:
        Tuple of (versions in listing order, active version or None).
    """
    versions: list[str] = []
    active: str | None = None
    for line in output.splitlines():
        match = pattern.match(line)
        if not match:
            continue
        version = match.group("version")
        versions.append(version)
        if match.group("marker"):
            active = version
    return versions, active
