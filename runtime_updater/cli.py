"""CLI entry point for runtime-updater."""

from __future__ import annotations

import logging
import signal
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from types import FrameType

import click

from .adapters.base import VersionManagerAdapter
from .adapters.perlbrew import PerlbrewAdapter
from .adapters.pyenv import PyenvAdapter
from .adapters.rbenv import RbenvAdapter
from .config import Settings, load_settings
from .coordinator import UpgradeCoordinator
from .errors import SUCCESS, BadArgument, Interrupted, UpdaterError
from .log import configure_logging

logger = logging.getLogger(__name__)

# Signals that abort a run. SIGINT arrives as KeyboardInterrupt.
INTERRUPT_SIGNALS = ("SIGTERM", "SIGHUP", "SIGQUIT", "SIGABRT")


def build_adapter(runtime: str, settings: Settings) -> VersionManagerAdapter:
    """Create the adapter for a runtime subcommand from settings."""
    if runtime == "perl":
        return PerlbrewAdapter(settings.perlbrew.executable)
    if runtime == "ruby":
        return RbenvAdapter(settings.rbenv.executable)
    if runtime == "python":
        return PyenvAdapter(settings.pyenv.executable)
    raise BadArgument(f"Unknown runtime: {runtime}")


def _raise_interrupted(signum: int, frame: FrameType | None) -> None:
    raise Interrupted(f"Run interrupted by '{signal.Signals(signum).name}' signal.")


@contextmanager
def interrupt_signals() -> Iterator[None]:
    """Turn termination signals into Interrupted for the duration of a run."""
    previous = {}
    for name in INTERRUPT_SIGNALS:
        signum = getattr(signal, name, None)
        if signum is not None:
            previous[signum] = signal.signal(signum, _raise_interrupted)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def upgrade(runtime: str, cleanup: bool) -> int:
    """Run the upgrade workflow for one runtime and return its exit code."""
    settings = load_settings()
    configure_logging(settings.log_level)

    adapter = build_adapter(runtime, settings)
    coordinator = UpgradeCoordinator(adapter, lock_dir=settings.lock_dir)
    with interrupt_signals():
        outcome = coordinator.run(cleanup_requested=cleanup)
    return outcome.exit_code


cleanup_option = click.option(
    "-c",
    "--cleanup",
    is_flag=True,
    help="Remove superseded versions once the switch to the new one succeeds.",
)


@click.group()
@click.version_option(package_name="runtime-updater")
def cli() -> None:
    """Keep version-managed language runtimes on their latest stable release."""


@cli.command()
@cleanup_option
def perl(cleanup: bool) -> int:
    """Upgrade Perl through perlbrew (even minor releases only)."""
    return upgrade("perl", cleanup)


@cli.command()
@cleanup_option
def ruby(cleanup: bool) -> int:
    """Upgrade Ruby through rbenv and ruby-build, re-installing gems."""
    return upgrade("ruby", cleanup)


@cli.command()
@cleanup_option
def python(cleanup: bool) -> int:
    """Upgrade Python through pyenv, re-installing pip packages."""
    return upgrade("python", cleanup)


def main(argv: list[str] | None = None) -> None:
    """Console script entry point: maps every failure kind to its exit code."""
    try:
        rv = cli.main(args=argv, prog_name="runtime-updater", standalone_mode=False)
    except click.exceptions.Abort:
        rv = Interrupted.exit_code
    except click.ClickException as exc:
        exc.show()
        configure_logging()
        logger.error("%s", exc.format_message())
        rv = BadArgument.exit_code
    except UpdaterError as exc:
        # Raised before the coordinator took over (e.g. a bad config file)
        configure_logging()
        logger.error("%s", exc)
        rv = exc.exit_code
    sys.exit(rv if isinstance(rv, int) else SUCCESS)


if __name__ == "__main__":
    main()
