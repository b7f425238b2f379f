"""Cleanup policy: which version to switch to and which to uninstall.

This is a pure function of the run's inputs. Two rules hold for every
decision it returns:

- a version still in use is only removed after a successful switch away
  from it (the coordinator runs the switch before any uninstall);
- a version the user selected by hand (neither the old nor the new latest)
  is never switched away from, and nothing is removed.
"""

from __future__ import annotations

from collections.abc import Sequence

from .models import CleanupDecision


def decide(
    cleanup_requested: bool,
    active: str | None,
    old_latest: str,
    new_latest: str,
    installed: Sequence[str],
) -> CleanupDecision:
    """Decide the switch and removals for one run.

    Args:
        cleanup_requested: The user's -c/--cleanup flag.
        active: Version currently in use, or None if the manager reports none.
        old_latest: Latest installed version before the run.
        new_latest: Latest stable version, installed by now.
        installed: Every installed version.

    Returns:
        The CleanupDecision for the coordinator to apply.
    """
    if active is None:
        return CleanupDecision()

    # Still on the previous latest: follow the upgrade, then drop the old one
    if active == old_latest and old_latest != new_latest:
        return CleanupDecision(
            switch_to=new_latest,
            versions_to_remove=[old_latest] if cleanup_requested else [],
        )

    # Already on the latest: everything else is obsolete
    if active == new_latest and cleanup_requested:
        obsolete = dict.fromkeys(v for v in installed if v != new_latest)
        return CleanupDecision(versions_to_remove=list(obsolete))

    return CleanupDecision()
