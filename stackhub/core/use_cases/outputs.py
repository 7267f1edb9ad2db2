"""
Outputs use case — expand stack outputs from captured state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from stackhub.core.context import RunContext
from stackhub.core.engine.lifecycle import expand_parameters
from stackhub.core.errors import StackhubError
from stackhub.core.models.parameters import CapturedOutput, ExpandedOutput
from stackhub.core.services.outputs import expand_requested_outputs
from stackhub.core.services.parameters import lock_parameters
from stackhub.core.use_cases.workspace import open_workspace


@dataclass
class OutputsResult:
    """Stack outputs plus the captured outputs they were derived from."""

    outputs: list[ExpandedOutput] = field(default_factory=list)
    captured: list[CapturedOutput] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "outputs": [o.model_dump(mode="json") for o in self.outputs],
            "captured": [
                {
                    "name": o.qname,
                    "kind": o.kind,
                    "value": "(masked)" if o.secret else o.value,
                }
                for o in self.captured
            ],
        }


def show_outputs(
    config_path: Path | None = None,
    ctx: RunContext | None = None,
) -> OutputsResult:
    """Expand the stack's declared outputs; every reference must exist."""
    result = OutputsResult()

    try:
        ws = open_workspace(config_path)
        captured = ws.state.captured_outputs()
        result.captured = list(captured.values())
        result.outputs = expand_requested_outputs(
            expand_parameters(lock_parameters(ws.stack.parameters)),
            captured,
            ws.stack.outputs,
            must_exist=True,
            ctx=ctx,
        )
    except StackhubError as e:
        result.error = str(e)
    return result
