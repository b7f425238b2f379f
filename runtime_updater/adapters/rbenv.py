"""Ruby via rbenv and ruby-build.

Gems are migrated by name only, so the new Ruby gets the latest release of
each gem rather than the exact versions installed under the old one.
"""

from __future__ import annotations

import re

from .shims import ShimAdapter

_GEM_NAME_RE = re.compile(r"^[A-Za-z0-9][\w.-]*$")


class RbenvAdapter(ShimAdapter):
    name = "rbenv"
    runtime = "Ruby"
    version_env_var = "RBENV_VERSION"
    list_available_args = ("install", "-l")

    def __init__(self, executable: str = "rbenv") -> None:
        super().__init__(executable)

    def library_names(self, version: str) -> list[str]:
        output = self.exec_query(version, "gem", "list", "--no-versions")
        # Older rubygems print a "*** LOCAL GEMS ***" banner
        return [
            line.strip()
            for line in output.splitlines()
            if _GEM_NAME_RE.match(line.strip())
        ]

    def install_command(self, names: list[str]) -> list[str]:
        return ["gem", "install", *names]
