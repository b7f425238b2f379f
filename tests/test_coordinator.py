"""Tests for runtime_updater.coordinator."""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from runtime_updater.adapters.perlbrew import PerlbrewAdapter
from runtime_updater.coordinator import UpgradeCoordinator
from runtime_updater.errors import ManagerUpgradeError
from runtime_updater.lock import run_lock
from runtime_updater.models import ExitOutcome


@pytest.fixture(autouse=True)
def quiet_output() -> Iterator[None]:
    """Silence step headers and echoes."""
    with patch("runtime_updater.coordinator.step"), patch(
        "runtime_updater.coordinator.echo"
    ):
        yield


class TestScenarios:
    def test_new_version_already_installed_with_cleanup(
        self, make_adapter: Callable[..., Any]
    ) -> None:
        """installed={v1 (active), v2}, old=v1, new=v2, cleanup."""
        adapter = make_adapter(["v1", "v2"], active="v1", available="v2", latest="v1")

        outcome = UpgradeCoordinator(adapter).run(cleanup_requested=True)

        assert outcome.ok
        assert adapter.mutations == [("switch_active", "v2"), ("uninstall", "v1")]
        assert adapter.installed == ["v2"]
        assert adapter.active == "v2"
        assert outcome.switched_to == "v2"
        assert outcome.removed == ["v1"]
        assert outcome.installed is None

    def test_fresh_install_without_cleanup(
        self, make_adapter: Callable[..., Any]
    ) -> None:
        """installed={v1}, active=v1, new=v2 not installed, no cleanup."""
        adapter = make_adapter(["v1"], active="v1", available="v2")

        outcome = UpgradeCoordinator(adapter).run(cleanup_requested=False)

        assert outcome.ok
        assert adapter.mutations == [
            ("install", "v2"),
            ("clone_libraries", "v1", "v2"),
            ("switch_active", "v2"),
        ]
        assert adapter.installed == ["v1", "v2"]
        assert adapter.active == "v2"
        assert outcome.installed == "v2"
        assert outcome.removed == []

    def test_fresh_install_with_cleanup_removes_after_switch(
        self, make_adapter: Callable[..., Any]
    ) -> None:
        adapter = make_adapter(["v1"], active="v1", available="v2")

        outcome = UpgradeCoordinator(adapter).run(cleanup_requested=True)

        assert outcome.ok
        assert adapter.mutations == [
            ("install", "v2"),
            ("clone_libraries", "v1", "v2"),
            ("switch_active", "v2"),
            ("uninstall", "v1"),
        ]
        assert adapter.installed == ["v2"]

    def test_pinned_version_is_left_alone(
        self, make_adapter: Callable[..., Any]
    ) -> None:
        adapter = make_adapter(["v0", "v1"], active="v0", available="v2")

        outcome = UpgradeCoordinator(adapter).run(cleanup_requested=True)

        assert outcome.ok
        assert adapter.mutations == [
            ("install", "v2"),
            ("clone_libraries", "v1", "v2"),
        ]
        assert adapter.active == "v0"

    def test_already_on_latest_removes_obsolete(
        self, make_adapter: Callable[..., Any]
    ) -> None:
        adapter = make_adapter(["v1", "v2", "v3"], active="v3", available="v3")

        outcome = UpgradeCoordinator(adapter).run(cleanup_requested=True)

        assert outcome.ok
        assert adapter.mutations == [("uninstall", "v1"), ("uninstall", "v2")]
        assert adapter.installed == ["v3"]


class TestIdempotence:
    @pytest.mark.parametrize("cleanup", [True, False])
    def test_no_upgrade_available_twice(
        self, make_adapter: Callable[..., Any], cleanup: bool
    ) -> None:
        first = make_adapter(["v1", "v2"], active="v1", available="v2")
        second = make_adapter(["v1", "v2"], active="v1", available="v2")

        UpgradeCoordinator(first).run(cleanup_requested=cleanup)
        UpgradeCoordinator(second).run(cleanup_requested=cleanup)

        for adapter in (first, second):
            ops = [c[0] for c in adapter.calls]
            assert "install" not in ops
            assert "clone_libraries" not in ops
        assert first.mutations == second.mutations

    def test_second_run_is_a_noop(self, make_adapter: Callable[..., Any]) -> None:
        adapter = make_adapter(["v1"], active="v1", available="v2")
        coordinator = UpgradeCoordinator(adapter)

        coordinator.run(cleanup_requested=True)
        adapter.calls.clear()
        outcome = coordinator.run(cleanup_requested=True)

        assert outcome.ok
        assert adapter.mutations == []


class TestFailurePropagation:
    def test_install_failure_stops_everything(
        self, make_adapter: Callable[..., Any]
    ) -> None:
        adapter = make_adapter(["v1"], active="v1", available="v2", fail_on={"install"})

        outcome = UpgradeCoordinator(adapter).run(cleanup_requested=True)

        assert outcome.exit_code == 94
        assert outcome.error_kind == "InstallError"
        assert adapter.mutations == [("install", "v2")]

    def test_clone_failure(self, make_adapter: Callable[..., Any]) -> None:
        adapter = make_adapter(
            ["v1"], active="v1", available="v2", fail_on={"clone_libraries"}
        )

        outcome = UpgradeCoordinator(adapter).run(cleanup_requested=True)

        assert outcome.exit_code == 95
        assert outcome.installed == "v2"
        assert adapter.mutations[-1] == ("clone_libraries", "v1", "v2")

    def test_switch_failure_never_uninstalls(
        self, make_adapter: Callable[..., Any]
    ) -> None:
        adapter = make_adapter(
            ["v1", "v2"],
            active="v1",
            available="v2",
            latest="v1",
            fail_on={"switch_active"},
        )

        outcome = UpgradeCoordinator(adapter).run(cleanup_requested=True)

        assert outcome.exit_code == 96
        assert outcome.message == "Switch from v1 to v2 failed."
        assert ("uninstall", "v1") not in adapter.calls
        assert adapter.installed == ["v1", "v2"]

    def test_uninstall_failure_stops_remaining_removals(
        self, make_adapter: Callable[..., Any]
    ) -> None:
        adapter = make_adapter(
            ["v1", "v2", "v3"], active="v3", available="v3", fail_on={"uninstall"}
        )

        outcome = UpgradeCoordinator(adapter).run(cleanup_requested=True)

        assert outcome.exit_code == 97
        assert adapter.mutations == [("uninstall", "v1")]
        assert outcome.removed == []

    def test_query_failure(self, make_adapter: Callable[..., Any]) -> None:
        adapter = make_adapter(
            ["v1"], active="v1", available="v2", fail_on={"latest_available"}
        )

        outcome = UpgradeCoordinator(adapter).run()

        assert outcome.exit_code == 92
        assert adapter.mutations == []

    def test_failure_is_logged_once(
        self,
        make_adapter: Callable[..., Any],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        adapter = make_adapter(["v1"], active="v1", available="v2", fail_on={"install"})

        UpgradeCoordinator(adapter).run()

        errors = [r for r in caplog.records if r.levelname == "ERROR"]
        assert len(errors) == 1
        assert "install v2 failed" in errors[0].getMessage()

    def test_keyboard_interrupt_becomes_interrupted(
        self, make_adapter: Callable[..., Any]
    ) -> None:
        adapter = make_adapter(["v1"], active="v1", available="v2")
        adapter.install = MagicMock(side_effect=KeyboardInterrupt)

        outcome = UpgradeCoordinator(adapter).run(cleanup_requested=True)

        assert outcome.exit_code == 99
        assert outcome.error_kind == "Interrupted"
        assert adapter.mutations == []


class TestManagerMaintenance:
    def test_self_upgrade_failure_aborts_before_queries(
        self, make_adapter: Callable[..., Any]
    ) -> None:
        adapter = make_adapter(["v1"], active="v1", available="v2")
        adapter.self_upgrade = MagicMock(side_effect=ManagerUpgradeError("boom"))

        outcome = UpgradeCoordinator(adapter).run()

        assert outcome.exit_code == 93
        assert adapter.calls == []

    def test_purge_runs_only_with_cleanup(
        self, make_adapter: Callable[..., Any]
    ) -> None:
        adapter = make_adapter(["v1"], active="v1", available="v1")
        adapter.purge_build_artifacts = MagicMock()

        UpgradeCoordinator(adapter).run(cleanup_requested=False)
        adapter.purge_build_artifacts.assert_not_called()

        UpgradeCoordinator(adapter).run(cleanup_requested=True)
        adapter.purge_build_artifacts.assert_called_once_with()

    def test_purge_failure_is_only_a_warning(
        self, make_adapter: Callable[..., Any]
    ) -> None:
        adapter = make_adapter(["v1", "v2"], active="v2", available="v2")
        adapter.purge_build_artifacts = MagicMock(
            side_effect=ManagerUpgradeError("clean failed")
        )

        outcome = UpgradeCoordinator(adapter).run(cleanup_requested=True)

        assert outcome.ok
        assert outcome.removed == ["v1"]


class TestLocking:
    def test_run_holds_lock(
        self, make_adapter: Callable[..., Any], tmp_path: Path
    ) -> None:
        adapter = make_adapter(["v1"], active="v1", available="v1")

        outcome = UpgradeCoordinator(adapter, lock_dir=tmp_path).run()

        assert outcome.ok
        assert (tmp_path / "fake.lock").exists()

    def test_concurrent_run_is_rejected(
        self, make_adapter: Callable[..., Any], tmp_path: Path
    ) -> None:
        adapter = make_adapter(["v1"], active="v1", available="v2")

        with run_lock(tmp_path, "fake"):
            outcome = UpgradeCoordinator(adapter, lock_dir=tmp_path).run()

        assert outcome.exit_code == 91
        assert adapter.calls == []


class TestPerlbrewDevelopmentBuild:
    """A development Perl newer than the latest stable release is kept."""

    AVAILABLE = "  perl-5.39.9\ni perl-5.38.2\n  perl-5.36.3\n"

    def run_perlbrew(
        self, listing: str, cleanup: bool
    ) -> tuple[list[tuple[str, ...]], ExitOutcome]:
        commands: list[tuple[str, ...]] = []

        def fake_run(*args: str, **kwargs: Any) -> subprocess.CompletedProcess[str]:
            commands.append(args[1:])
            stdout = {"list": listing, "available": self.AVAILABLE}.get(args[1], "")
            return subprocess.CompletedProcess(args=args, returncode=0, stdout=stdout)

        with patch("runtime_updater.adapters.base.run", side_effect=fake_run):
            outcome = UpgradeCoordinator(PerlbrewAdapter("perlbrew")).run(
                cleanup_requested=cleanup
            )
        return commands, outcome

    def test_active_development_build_is_not_downgraded(self) -> None:
        commands, outcome = self.run_perlbrew(
            "  perl-5.38.2\n* perl-5.39.9\n", cleanup=True
        )

        assert outcome.ok
        assert outcome.switched_to is None
        assert ("switch", "perl-5.38.2") not in commands
        assert ("uninstall", "perl-5.39.9") not in commands
        assert outcome.removed == ["perl-5.38.2"]

    @pytest.mark.parametrize("cleanup", [True, False])
    def test_inactive_development_build_is_left_alone(self, cleanup: bool) -> None:
        commands, outcome = self.run_perlbrew(
            "* perl-5.38.2\n  perl-5.39.9\n", cleanup=cleanup
        )

        assert outcome.ok
        assert outcome.installed is None
        assert outcome.switched_to is None
        assert outcome.removed == []
        assert not [c for c in commands if c[0] in ("install", "switch", "uninstall")]
