"""Upgrade workflow: plan → install → clone → switch → remove.

This module orchestrates one upgrade run against a single version manager:
1. Upgrade the version manager itself (where the adapter supports it)
2. Compare the latest installed version with the latest stable one
3. Install the new version and clone libraries into it, if needed
4. Ask the cleanup policy what to switch to and what to remove
5. Switch the active version, then uninstall obsolete versions

Every step is fail-fast: the first error stops the run and is reported
through the returned ExitOutcome. Version manager state changes are not
transactional, so nothing is retried or rolled back; the operator inspects
and re-runs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from pathlib import Path

from .adapters.base import VersionManagerAdapter
from .errors import Interrupted, ManagerUpgradeError, SwitchError, UpdaterError
from .lock import run_lock
from .models import CleanupDecision, ExitOutcome, InstalledSet, UpgradePlan
from .policy import decide
from .shell import echo, step

logger = logging.getLogger(__name__)

CleanupPolicy = Callable[..., CleanupDecision]


class UpgradeCoordinator:
    """Runs the upgrade workflow for one version manager.

    Args:
        adapter: The version manager to drive.
        lock_dir: Directory for the run lock, or None to run unlocked.
        policy: Cleanup decision function (defaults to policy.decide).
    """

    def __init__(
        self,
        adapter: VersionManagerAdapter,
        *,
        lock_dir: Path | None = None,
        policy: CleanupPolicy = decide,
    ) -> None:
        self.adapter = adapter
        self.lock_dir = lock_dir
        self.policy = policy

    def run(self, cleanup_requested: bool = False) -> ExitOutcome:
        """Execute the full workflow.

        Args:
            cleanup_requested: Remove superseded versions (the -c flag).

        Returns:
            ExitOutcome; exit_code is 0 only if every invoked step succeeded.
        """
        outcome = ExitOutcome(manager=self.adapter.name)
        try:
            with self._lock():
                self._run_steps(cleanup_requested, outcome)
        except KeyboardInterrupt:
            interrupted = Interrupted("Run interrupted by 'INT' signal.")
            return self._abort(outcome, interrupted)
        except UpdaterError as exc:
            return self._abort(outcome, exc)

        print(f"\n{'=' * 60}\nDone!\n{'=' * 60}")
        return outcome

    def _lock(self) -> AbstractContextManager[object]:
        if self.lock_dir is None:
            return nullcontext()
        return run_lock(self.lock_dir, self.adapter.name)

    def _abort(self, outcome: ExitOutcome, error: UpdaterError) -> ExitOutcome:
        logger.error("%s", error)
        return outcome.fail(error)

    def _run_steps(self, cleanup_requested: bool, outcome: ExitOutcome) -> None:
        self.upgrade_manager()
        installed, plan = self.plan_upgrade()

        if plan.needs_install:
            self.install_version(plan.new_version)
            outcome.installed = plan.new_version
            self.clone_libraries(plan.old_version, plan.new_version)

        if cleanup_requested:
            self.purge_build_artifacts()

        decision = self.policy(
            cleanup_requested,
            installed.active,
            plan.old_version,
            plan.new_version,
            installed.versions,
        )
        self.apply_cleanup(decision, installed, outcome)

    def upgrade_manager(self) -> None:
        step(f"Upgrading {self.adapter.name}")
        self.adapter.self_upgrade()

    def plan_upgrade(self) -> tuple[InstalledSet, UpgradePlan]:
        """Query installed and available versions and build the UpgradePlan.

        A new version that is already installed (but not the latest
        installed, e.g. installed by hand) is not installed again. When the
        latest installed version orders at or above the latest stable one
        (e.g. a development build), the plan keeps old and new equal.
        """
        step(f"Checking {self.adapter.runtime} versions")
        installed = self.adapter.list_installed()
        stable = self.adapter.latest_available()
        upgrade = self.adapter.is_newer(stable, installed.latest)
        target = stable if upgrade else installed.latest
        plan = UpgradePlan(
            old_version=installed.latest,
            new_version=target,
            needs_install=upgrade and target not in installed,
        )
        echo(f"latest installed: {plan.old_version}")
        echo(f"latest stable:    {stable}")
        echo(f"active:           {installed.active or '<none>'}")
        return installed, plan

    def install_version(self, version: str) -> None:
        step(f"Installing {self.adapter.runtime} {version}")
        self.adapter.install(version)
        logger.info("Installed new %s version %s.", self.adapter.runtime, version)

    def clone_libraries(self, old_version: str, new_version: str) -> None:
        step(f"Copying libraries from {old_version} to {new_version}")
        self.adapter.clone_libraries(old_version, new_version)
        logger.info("Copied libraries from %s to %s.", old_version, new_version)

    def purge_build_artifacts(self) -> None:
        # Leftover build directories never block the upgrade itself
        try:
            self.adapter.purge_build_artifacts()
        except ManagerUpgradeError as exc:
            logger.warning("%s", exc)

    def apply_cleanup(
        self,
        decision: CleanupDecision,
        installed: InstalledSet,
        outcome: ExitOutcome,
    ) -> None:
        """Switch first, then uninstall; any failure stops the remaining steps."""
        step("Cleaning up")
        runtime = self.adapter.runtime

        if decision.is_noop:
            echo(
                f"Current {runtime} version unchanged.  "
                f"Running {installed.active or '<unmanaged>'}."
            )
            return

        if decision.switch_to is not None:
            try:
                self.adapter.switch_active(decision.switch_to)
            except SwitchError as exc:
                raise SwitchError(
                    f"Switch from {installed.active} to {decision.switch_to} failed."
                ) from exc
            outcome.switched_to = decision.switch_to
            logger.info(
                "Switched %s from %s to %s.",
                runtime,
                installed.active,
                decision.switch_to,
            )
            echo(f"Now running {runtime} version {decision.switch_to} globally.")

        for version in decision.versions_to_remove:
            self.adapter.uninstall(version)
            outcome.removed.append(version)
            logger.info("Uninstalled old %s version %s.", runtime, version)
