"""Prerequisite checks for requirement terms.

``check_require(term, ctx)`` answers two questions:

- is there a checker for this term at all (``known``), and
- did the checker find the prerequisite satisfied (``error`` is None).

Passing terms are memoized in ``ctx.verified_requirements`` so each
external tool runs at most once per run.
"""

from __future__ import annotations

from stackhub.core.context import RunContext
from stackhub.core.services.prerequisites.cloud import (
    check_azure,
    check_gcp,
    setup_terraform_azure_env,
)
from stackhub.core.services.prerequisites.tool_version import check_tool

# Terms with a tool probe
TOOL_TERMS = frozenset({"aws", "gcp", "gcs", "kubectl", "kubernetes", "helm", "vault"})


def check_require(term: str, ctx: RunContext) -> tuple[bool, str | None]:
    """Check the prerequisite behind a requirement term.

    Returns:
        ``(known, error)``. ``known`` is False when no checker exists for
        ``term``; ``error`` carries the diagnostic of a failed check.
    """
    if term in ctx.verified_requirements:
        return True, None

    if term == "azure":
        error = check_azure()
        if error:
            return True, error
        setup_terraform_azure_env()

    elif term in TOOL_TERMS:
        error = check_tool(term, ctx)
        if error:
            return True, error
        if term in ("gcp", "gcs"):
            error = check_gcp()
            if error:
                return True, error

    else:
        return False, None

    ctx.verified_requirements.add(term)
    return True, None


__all__ = [
    "TOOL_TERMS",
    "check_require",
]
