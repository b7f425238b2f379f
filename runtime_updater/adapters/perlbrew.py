"""Perl via perlbrew.

perlbrew's own `upgrade-perl` only moves within a minor series (5.36.0 →
5.36.3), so the newest stable series has to be found from `perlbrew
available` and installed explicitly. Perl ships development releases on odd
minor numbers; only even minors count as stable.

Sample `perlbrew list` output:

      perl-5.36.0
    * perl-5.38.2
      perl-5.38.2@tooling

Sample `perlbrew available` output:

      perl-5.39.9    available from  <https://www.cpan.org/src/5.0/perl-5.39.9.tar.gz>
    i perl-5.38.2    available from  <https://www.cpan.org/src/5.0/perl-5.38.2.tar.gz>
"""

from __future__ import annotations

import re

from ..errors import (
    CloneError,
    InstallError,
    SwitchError,
    ToolQueryError,
    UninstallError,
)
from ..models import InstalledSet
from ..versions import has_even_minor, newest, strip_prefix
from .base import VersionManagerAdapter, parse_marked_listing

PREFIX = "perl-"

# Library entries ("perl-5.38.2@tooling") are skipped
_INSTALLED_RE = re.compile(r"^\s*(?P<marker>\*)?\s*(?P<version>perl-\d+(?:\.\d+)+)\s*$")
_AVAILABLE_RE = re.compile(r"^i?\s+(?P<version>perl-\d+\.\d+\.\d+)(?=\s|$)")


class PerlbrewAdapter(VersionManagerAdapter):
    name = "perlbrew"
    runtime = "Perl"
    version_prefix = PREFIX

    def __init__(self, executable: str = "perlbrew") -> None:
        super().__init__(executable)

    def list_installed(self) -> InstalledSet:
        versions, active = parse_marked_listing(self._query("list"), _INSTALLED_RE)
        if not versions:
            raise ToolQueryError("perlbrew reports no installed Perl versions.")
        return InstalledSet(
            versions=versions, latest=newest(versions, PREFIX), active=active
        )

    def latest_available(self) -> str:
        candidates: list[str] = []
        for line in self._query("available").splitlines():
            match = _AVAILABLE_RE.match(line)
            if match and has_even_minor(match.group("version"), PREFIX):
                candidates.append(match.group("version"))
        latest = newest(candidates, PREFIX)
        if latest is None:
            raise ToolQueryError("perlbrew lists no stable Perl version.")
        return latest

    def install(self, version: str) -> None:
        self._call(
            "install",
            version,
            error=InstallError,
            message=f"Failed to install {version}.",
        )

    def uninstall(self, version: str) -> None:
        self._call(
            "uninstall",
            version,
            error=UninstallError,
            message=f"Failed to uninstall {version}.",
        )

    def switch_active(self, version: str) -> None:
        self._call(
            "switch", version, error=SwitchError, message=f"Switch to {version} failed."
        )

    def clone_libraries(self, old_version: str, new_version: str) -> None:
        # clone-modules takes bare version numbers
        old_no = strip_prefix(old_version, PREFIX)
        new_no = strip_prefix(new_version, PREFIX)
        self._call(
            "clone-modules",
            old_no,
            new_no,
            error=CloneError,
            message=f"Module clone from {old_no} to {new_no} failed.",
        )

    def self_upgrade(self) -> None:
        self._maintenance("self-upgrade", message="Perlbrew upgrade failed.")

    def purge_build_artifacts(self) -> None:
        self._maintenance("clean", message="perlbrew clean failed.")
