"""
Parameter and output models — the values exchanged between components.

A value is addressed by its *qualified name*: ``name`` for stack scope,
``name:component`` for component scope. Parameters are locked into an
immutable tuple for a deployment step; captured outputs live in a plain
dict keyed by qualified name where the last write wins.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


def qualified_name(name: str, component: str = "") -> str:
    """Build ``name`` or ``name:component``."""
    if component:
        return f"{name}:{component}"
    return name


def is_secret_kind(kind: str) -> bool:
    """Kinds starting with ``secret`` mark sensitive values."""
    return kind.startswith("secret")


class Parameter(BaseModel):
    """A resolved parameter, optionally scoped to one component."""

    model_config = ConfigDict(frozen=True)

    name: str
    component: str = ""
    value: str = ""
    kind: str = ""

    @property
    def qname(self) -> str:
        return qualified_name(self.name, self.component)


class CapturedOutput(BaseModel):
    """A value produced by a component after it ran."""

    model_config = ConfigDict(frozen=True)

    name: str
    component: str = ""
    value: str = ""
    kind: str = ""

    @property
    def qname(self) -> str:
        return qualified_name(self.name, self.component)

    @property
    def secret(self) -> bool:
        return is_secret_kind(self.kind)


class RequestedOutput(BaseModel):
    """A stack-level output declaration, resolved by output expansion.

    ``name`` containing ``:`` selects a component output verbatim;
    otherwise ``value`` is a template (empty means ``${name}``).
    """

    name: str
    value: str = ""
    kind: str = ""
    brief: str = ""


class ExpandedOutput(BaseModel):
    """A stack output ready for display or consumption."""

    name: str
    value: str
    kind: str = ""
    brief: str = ""


# Immutable snapshot of parameters for one pass
LockedParameters = tuple[Parameter, ...]

# Qualified name → captured output
CapturedOutputs = dict[str, CapturedOutput]
