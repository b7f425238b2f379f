"""Python via pyenv.

Packages are migrated from `pip freeze` of the old interpreter. Only the
distribution names are carried over, so the new interpreter installs the
latest compatible release of each. Editable installs and direct references
to local paths are skipped.
"""

from __future__ import annotations

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from .shims import ShimAdapter


def requirement_names(freeze_output: str) -> list[str]:
    """Extract canonical distribution names from `pip freeze` output.

    Examples:
        "requests==2.31.0" → "requests"
        "My_Package==1.0" → "my-package"
        "-e git+https://..." → skipped
    """
    names: dict[str, None] = {}
    for line in freeze_output.splitlines():
        line = line.strip()
        if not line or line.startswith(("#", "-")):
            continue
        try:
            req = Requirement(line)
        except InvalidRequirement:
            continue
        if req.url and req.url.startswith("file:"):
            continue
        names[canonicalize_name(req.name)] = None
    return list(names)


class PyenvAdapter(ShimAdapter):
    name = "pyenv"
    runtime = "Python"
    version_env_var = "PYENV_VERSION"
    list_available_args = ("install", "--list")

    def __init__(self, executable: str = "pyenv") -> None:
        super().__init__(executable)

    def library_names(self, version: str) -> list[str]:
        output = self.exec_query(
            version, "python", "-m", "pip", "freeze", "--exclude-editable"
        )
        return requirement_names(output)

    def install_command(self, names: list[str]) -> list[str]:
        return ["python", "-m", "pip", "install", *names]
