"""
Plan use case — run a lifecycle pass and persist component status.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from stackhub.core.context import RunContext
from stackhub.core.engine.lifecycle import PlanReport, plan_stack
from stackhub.core.errors import StackhubError, TemplateError
from stackhub.core.use_cases.workspace import open_workspace

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    """Result of planning a stack."""

    report: PlanReport | None = None
    stack_root: Path | None = None
    error: str | None = None
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            if self.errors:
                result["errors"] = self.errors
            return result

        result["stack_root"] = str(self.stack_root)
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def run_plan(
    config_path: Path | None = None,
    ctx: RunContext | None = None,
    save: bool = True,
) -> PlanResult:
    """Plan every component of the stack.

    Args:
        config_path: Optional explicit path to hub.yaml.
        ctx: Run context (force flag, memo caches).
        save: Persist component status to the state file.

    Returns:
        PlanResult with the lifecycle report, or the error that stopped it.
    """
    result = PlanResult()
    ctx = ctx or RunContext()

    try:
        ws = open_workspace(config_path)
        result.stack_root = ws.root
        if ctx.project_root is None:
            ctx.project_root = ws.root

        result.report = plan_stack(ws.stack, ws.components, ws.state, ctx, ws.root)
    except TemplateError as e:
        logger.debug("Plan stopped on template errors: %s", e)
        result.error = str(e)
        result.errors = e.errors
        return result
    except StackhubError as e:
        logger.debug("Plan stopped: %s", e)
        result.error = str(e)
        return result

    if save:
        ws.save()
    return result
