"""Version parsing and ordering utilities.

Version managers report releases as plain strings ("3.3.0", "perl-5.38.2").
These helpers turn them into semver objects so adapters can pick the newest
entry and apply stability rules, with special handling for incomplete
version strings (e.g., "5.38" → "5.38.0").
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import semver

_NUMERIC = re.compile(r"\d+(?:\.\d+)*")


def parse_version(version_str: str, prefix: str = "") -> semver.Version:
    """Parse a version string into a semver.Version object.

    An optional tool-specific prefix (e.g. "perl-") is stripped first.
    Handles incomplete versions by padding with zeros:
    - "3" → "3.0.0"
    - "3.3" → "3.3.0"
    - "perl-5.38.2" (prefix "perl-") → "5.38.2"

    Only the first 3 components are used (major.minor.patch). Anything after
    the leading numeric run (e.g. "-preview1") is ignored.

    Raises:
        ValueError: If no numeric version can be found.
    """
    match = _NUMERIC.match(strip_prefix(version_str, prefix))
    if not match:
        raise ValueError(f"Not a version string: {version_str!r}")
    parts = [int(p) for p in match.group(0).split(".")]
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append(0)
    return semver.Version(major=parts[0], minor=parts[1], patch=parts[2])


def strip_prefix(version_str: str, prefix: str) -> str:
    """Remove a tool-specific prefix: "perl-5.38.2" → "5.38.2"."""
    if prefix and version_str.startswith(prefix):
        return version_str[len(prefix) :]
    return version_str


def newest(versions: Iterable[str], prefix: str = "") -> str | None:
    """Return the highest version in versions, or None if empty.

    Ties (e.g. "3.3" and "3.3.0") keep the first one seen.
    """
    best: str | None = None
    best_key: semver.Version | None = None
    for v in versions:
        key = parse_version(v, prefix)
        if best_key is None or key > best_key:
            best, best_key = v, key
    return best


def has_even_minor(version_str: str, prefix: str = "") -> bool:
    """True for releases on an even-numbered minor series.

    Perl (among others) ships development releases on odd minor numbers,
    so 5.38.x is stable and 5.39.x is not.
    """
    return parse_version(version_str, prefix).minor % 2 == 0
