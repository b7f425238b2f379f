"""Shared behaviour for shim-based version managers (rbenv, pyenv).

Both tools have the same command surface: `versions` lists installed
runtimes with the active one starred, `install`/`uninstall -f` manage them,
`global` switches the default, and `exec` runs a command under a version
selected through an environment variable. Only the library tooling (gem,
pip) differs between subclasses.

Sample `versions` output:

      system
      3.2.2
    * 3.3.0 (set by /home/me/.rbenv/version)
      3.11.7/envs/tools
"""

from __future__ import annotations

import re
from abc import abstractmethod

from ..errors import (
    CloneError,
    InstallError,
    SwitchError,
    ToolQueryError,
    UninstallError,
)
from ..models import InstalledSet
from ..versions import newest
from .base import VersionManagerAdapter, parse_marked_listing

# Plain numeric releases only: skips "system", "3.3.0-preview1", virtualenvs
_INSTALLED_RE = re.compile(
    r"^\s*(?P<marker>\*)?\s*(?P<version>\d+(?:\.\d+)+)(?:\s+\(.*\))?\s*$"
)
_RELEASE_RE = re.compile(r"^\s*(?P<version>\d+\.\d+\.\d+)\s*$")


class ShimAdapter(VersionManagerAdapter):
    """Version manager driven through rbenv/pyenv style subcommands.

    Attributes:
        version_env_var: Variable selecting the version for `exec`
                         (RBENV_VERSION, PYENV_VERSION).
        list_available_args: Subcommand listing installable versions.
    """

    version_env_var: str = ""
    list_available_args: tuple[str, ...] = ("install", "--list")

    def list_installed(self) -> InstalledSet:
        versions, active = parse_marked_listing(self._query("versions"), _INSTALLED_RE)
        if not versions:
            raise ToolQueryError(
                f"{self.name} reports no installed {self.runtime} versions."
            )
        return InstalledSet(versions=versions, latest=newest(versions), active=active)

    def latest_available(self) -> str:
        output = self._query(*self.list_available_args)
        candidates: list[str] = []
        for line in output.splitlines():
            match = _RELEASE_RE.match(line)
            if match:
                candidates.append(match.group("version"))
        latest = newest(candidates)
        if latest is None:
            raise ToolQueryError(f"{self.name} lists no stable {self.runtime} version.")
        return latest

    def install(self, version: str) -> None:
        self._call(
            "install",
            version,
            error=InstallError,
            message=f"Failed to install {self.runtime} {version}.",
        )

    def uninstall(self, version: str) -> None:
        self._call(
            "uninstall",
            "-f",
            version,
            error=UninstallError,
            message=f"Failed to uninstall {self.runtime} {version}.",
        )

    def switch_active(self, version: str) -> None:
        self._call(
            "global",
            version,
            error=SwitchError,
            message=f"Switch to {self.runtime} {version} failed.",
        )

    def clone_libraries(self, old_version: str, new_version: str) -> None:
        names = self.library_names(old_version)
        if not names:
            return
        self._call(
            "exec",
            *self.install_command(names),
            error=CloneError,
            message=(
                f"Failed to import {len(names)} libraries from {old_version} "
                f"into {new_version}."
            ),
            env=self.version_env(new_version),
        )

    def version_env(self, version: str) -> dict[str, str]:
        """Environment selecting `version` for `<tool> exec`."""
        return {self.version_env_var: version}

    def exec_query(self, version: str, *args: str) -> str:
        """Capture output of `<tool> exec ARGS` under `version`."""
        return self._query(
            "exec", *args, error=CloneError, env=self.version_env(version)
        )

    @abstractmethod
    def library_names(self, version: str) -> list[str]:
        """Names of the libraries installed under `version`.

        Raises:
            CloneError: If the library list cannot be retrieved.
        """

    @abstractmethod
    def install_command(self, names: list[str]) -> list[str]:
        """Command (run through `exec`) installing the latest `names`."""
