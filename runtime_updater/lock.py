"""Per version manager run lock.

Upgrades mutate the version manager's installation directory without any
transaction, so two runs against the same manager must never overlap. The
lock is an exclusive, non-blocking portalocker lock on
<lock_dir>/<manager>.lock: a second run fails immediately instead of waiting.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import portalocker

from .errors import LockError

logger = logging.getLogger(__name__)


@contextmanager
def run_lock(lock_dir: Path, name: str) -> Iterator[Path]:
    """Hold the run lock for manager `name` for the duration of the block.

    Args:
        lock_dir: Directory holding lock files; created if missing.
        name: Version manager name, used as the lock file stem.

    Yields:
        Path of the lock file.

    Raises:
        LockError: If another process already holds the lock.
    """
    lock_dir.mkdir(parents=True, exist_ok=True)
    path = lock_dir / f"{name}.lock"

    with open(path, "a", encoding="utf-8") as fh:
        try:
            portalocker.lock(fh, portalocker.LOCK_EX | portalocker.LOCK_NB)
        except portalocker.exceptions.LockException as exc:
            raise LockError(
                f"Another {name} upgrade is already running (lock held on {path})."
            ) from exc
        logger.debug("Acquired run lock %s", path)
        try:
            yield path
        finally:
            portalocker.unlock(fh)
