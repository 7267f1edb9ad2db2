"""
L1 Domain — Minimum version checks (pure).

Compares dotted version strings numerically.
No I/O, no subprocess.
"""

from __future__ import annotations

import re


def _parse_semver(v: str) -> tuple[int, ...]:
    return tuple(int(x) for x in v.lstrip("v").split(".") if x != "")


def check_min_version(detected: str, minimum: str) -> str | None:
    """Validate ``detected`` against a ``>= minimum`` constraint.

    Returns:
        ``None`` when satisfied (or unparsable), else a diagnostic.
    """
    try:
        det_parts = _parse_semver(detected)
        min_parts = _parse_semver(minimum)
    except ValueError:
        return None

    if det_parts >= min_parts:
        return None
    return f"`{detected}` version detected; must have at least version `{minimum}`"


def check_version_output(minimum: str, pattern: re.Pattern[str], output: str) -> str | None:
    """Extract a version from tool output and check it.

    Returns:
        ``None`` when satisfied, else a diagnostic.
    """
    if not output:
        return "no output"
    match = pattern.search(output)
    if match is None:
        return "no version string found"
    return check_min_version(match.group(1), minimum)
