"""
StackState — what previous deployment steps left behind.

Serialized to .hub/state.json. Holds the outputs each component captured
and the summary of the last lifecycle pass. Disposable: deleting it only
forgets captured outputs.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from stackhub.core.models.parameters import CapturedOutput, CapturedOutputs, ExpandedOutput


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class ComponentState(BaseModel):
    """Runtime state of a component."""

    name: str
    status: str = ""  # planned, skipped, failed
    outputs: list[CapturedOutput] = Field(default_factory=list)
    unmet_optional: list[str] = Field(default_factory=list)
    updated_at: str | None = None


class StackState(BaseModel):
    """Root state model — serialized to .hub/state.json."""

    schema_version: int = 1

    stack_name: str = ""

    created_at: str = Field(default_factory=_now_iso)
    updated_at: str = Field(default_factory=_now_iso)

    components: dict[str, ComponentState] = Field(default_factory=dict)
    stack_outputs: list[ExpandedOutput] = Field(default_factory=list)

    metadata: dict[str, Any] = Field(default_factory=dict)

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = _now_iso()

    def set_component_state(self, name: str, **kwargs: Any) -> None:
        """Update or create a component state entry."""
        if name in self.components:
            for key, value in kwargs.items():
                setattr(self.components[name], key, value)
        else:
            self.components[name] = ComponentState(name=name, **kwargs)
        self.components[name].updated_at = _now_iso()

    def captured_outputs(self) -> CapturedOutputs:
        """All captured outputs keyed by qualified name."""
        outputs: CapturedOutputs = {}
        for component in self.components.values():
            for output in component.outputs:
                outputs[output.qname] = output
        return outputs

    def component_outputs(self, name: str) -> CapturedOutputs:
        """Captured outputs of one component keyed by qualified name."""
        component = self.components.get(name)
        if component is None:
            return {}
        return {o.qname: o for o in component.outputs}
