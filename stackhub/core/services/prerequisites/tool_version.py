"""
L3 Detection — Tool presence and version probes.

Runs the probe command for a requirement term and checks the version it
reports against the minimum the engine supports.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess

from stackhub.core.context import RunContext
from stackhub.core.services.prerequisites.version_constraint import check_version_output

logger = logging.getLogger(__name__)

# Blocking probes; a hung tool surfaces as a failed check
PROBE_TIMEOUT = 120

# requirement term → probe command (default: <term> version)
PROBE_COMMANDS: dict[str, list[str]] = {
    "aws":        ["aws", "s3", "ls", "--page-size", "5"],
    "gcp":        ["gcloud", "version"],
    "gcs":        ["gsutil", "version"],
    "kubectl":    ["kubectl", "version", "--client"],
    "kubernetes": ["kubectl", "version", "--client"],
    "helm":       ["helm", "version", "--client"],
}

# binary → (minimum version, pattern capturing the version)
MIN_VERSIONS: dict[str, tuple[str, re.Pattern[str]]] = {
    "gcloud":  ("239.0.0", re.compile(r"Google Cloud SDK ([\d.]+)")),
    "gsutil":  ("4.37",    re.compile(r"version: ([\d.]+)")),
    "vault":   ("1.1.0",   re.compile(r"Vault v([\d.]+)")),
    "kubectl": ("1.13.5",  re.compile(r"GitVersion:\"v([\d.]+)")),
    "helm":    ("2.13.1",  re.compile(r"SemVer:\"v([\d.]+)")),
}


def run_bin(*argv: str) -> tuple[str, str | None]:
    """Run a probe command with the current environment.

    Returns:
        ``(combined stdout+stderr, error)``; ``error`` is None on exit 0.
    """
    logger.debug("Probing: %s", " ".join(argv))
    try:
        result = subprocess.run(
            list(argv),
            capture_output=True,
            text=True,
            timeout=PROBE_TIMEOUT,
            env=os.environ.copy(),
        )
    except FileNotFoundError:
        return "", f"{list(argv)}: executable `{argv[0]}` not found"
    except subprocess.TimeoutExpired:
        return "", f"{list(argv)}: timed out after {PROBE_TIMEOUT}s"

    output = (result.stdout or "") + (result.stderr or "")
    if output:
        logger.debug("%s", output.rstrip())
    if result.returncode != 0:
        return output, f"{list(argv)}: exit status {result.returncode}"
    return output, None


def check_tool(term: str, ctx: RunContext) -> str | None:
    """Probe the tool behind ``term``.

    A missing or failing binary is an error; a too-old version is only a
    one-time warning.
    """
    argv = PROBE_COMMANDS.get(term, [term, "version"])
    output, error = run_bin(*argv)
    if error:
        return error

    constraint = MIN_VERSIONS.get(argv[0])
    if constraint is not None:
        minimum, pattern = constraint
        problem = check_version_output(minimum, pattern, output)
        if problem:
            ctx.warn_once(
                "`%s` version requirement cannot be satisfied: %s", term, problem, log=logger,
            )
    return None
