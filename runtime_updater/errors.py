"""Error taxonomy for upgrade runs.

Every error is fatal to a run. Each kind carries the process exit code the
CLI reports for it, so the numeric contract lives in one place:

    0   success
    1   unexpected error (uncaught exception)
    91  LockError
    92  ToolQueryError
    93  ManagerUpgradeError
    94  InstallError
    95  CloneError
    96  SwitchError
    97  UninstallError
    98  BadArgument
    99  Interrupted
"""

from __future__ import annotations

SUCCESS = 0
UNEXPECTED_ERROR = 1


class UpdaterError(Exception):
    """Base class for failures that abort an upgrade run."""

    exit_code: int = UNEXPECTED_ERROR


class LockError(UpdaterError):
    """Another run already holds the lock for this version manager."""

    exit_code = 91


class ToolQueryError(UpdaterError):
    """The version manager could not be queried or its output not parsed."""

    exit_code = 92


class ManagerUpgradeError(UpdaterError):
    """Upgrading or maintaining the version manager itself failed."""

    exit_code = 93


class InstallError(UpdaterError):
    exit_code = 94


class CloneError(UpdaterError):
    """Copying libraries from the old runtime to the new one failed."""

    exit_code = 95


class SwitchError(UpdaterError):
    exit_code = 96


class UninstallError(UpdaterError):
    exit_code = 97


class BadArgument(UpdaterError):
    """Invalid command line or configuration."""

    exit_code = 98


class Interrupted(UpdaterError):
    """The run was stopped by a signal."""

    exit_code = 99
