"""
Requires use case — check requirement terms against local tooling.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from stackhub.core.context import RunContext


@dataclass
class RequireCheck:
    term: str
    known: bool
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.known and self.error is None


@dataclass
class RequiresResult:
    checks: list[RequireCheck] = field(default_factory=list)

    @property
    def all_ok(self) -> bool:
        return all(c.ok for c in self.checks)

    def to_dict(self) -> dict:
        return {
            "ok": self.all_ok,
            "checks": [
                {"term": c.term, "known": c.known, "ok": c.ok, "error": c.error}
                for c in self.checks
            ],
        }


def check_requirements(terms: list[str], ctx: RunContext | None = None) -> RequiresResult:
    """Run the prerequisite check for each term."""
    ctx = ctx or RunContext()
    result = RequiresResult()
    for term in terms:
        known, error = ctx.check_require(term)
        result.checks.append(RequireCheck(term=term, known=known, error=error))
    return result
