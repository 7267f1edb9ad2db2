"""
Capture use case — record a component output into the state file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from stackhub.core.errors import StackhubError
from stackhub.core.models.parameters import CapturedOutput
from stackhub.core.services.outputs import merge_output
from stackhub.core.use_cases.workspace import open_workspace

logger = logging.getLogger(__name__)


@dataclass
class CaptureResult:
    """Result of capturing one output."""

    output: CapturedOutput | None = None
    state_path: Path | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        assert self.output is not None
        return {
            "name": self.output.qname,
            "kind": self.output.kind,
            "state_path": str(self.state_path),
        }


def capture_output(
    component: str,
    name: str,
    value: str,
    kind: str = "",
    config_path: Path | None = None,
) -> CaptureResult:
    """Merge ``name:component = value`` into the component's captured outputs."""
    result = CaptureResult()

    try:
        ws = open_workspace(config_path)
    except StackhubError as e:
        result.error = str(e)
        return result

    if ws.stack.get_component(component) is None:
        result.error = f"Component `{component}` is not declared in {ws.config_path}"
        return result

    output = CapturedOutput(name=name, component=component, value=value, kind=kind)
    outputs = ws.state.component_outputs(component)
    merge_output(outputs, output)
    ws.state.set_component_state(component, outputs=list(outputs.values()))
    ws.save()

    logger.info("Captured `%s`", output.qname)
    result.output = outputs[output.qname]
    result.state_path = ws.state_path
    return result
