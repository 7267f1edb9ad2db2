"""
Parameter/output store — lookups over qualified names.

Flattens locked parameters and captured outputs into plain ``qname →
value`` dicts and resolves a bare variable name the way a component sees
it: its own scope first, then the components it depends on, then stack
scope.

No I/O.
"""

from __future__ import annotations

import logging
import re

from stackhub.core.models.parameters import (
    CapturedOutputs,
    LockedParameters,
    Parameter,
    qualified_name,
)

logger = logging.getLogger(__name__)

# Any ${...}; the body is validated separately so expressions can be rejected
CURLY_EXPRESSION = re.compile(r"\$\{[^}]+\}")

_IDENTIFIER = re.compile(r"[a-zA-Z0-9_.|:/-]+")


def require_expansion(value: str) -> bool:
    """True if ``value`` still contains a ``${...}`` placeholder."""
    return CURLY_EXPRESSION.search(value) is not None


def strip_curly(match: str) -> tuple[str, bool]:
    """Strip ``${`` and ``}``.

    Returns:
        ``(variable, is_expression)``; ``is_expression`` is True when the
        body is not a plain identifier (e.g. ``${a == b}``).
    """
    variable = match[2:-1].strip()
    return variable, _IDENTIFIER.fullmatch(variable) is None


def lock_parameters(*groups: list[Parameter]) -> LockedParameters:
    """Freeze parameter lists into one ordered snapshot.

    Later groups override earlier ones by qualified name; the position of
    the first occurrence is kept.
    """
    merged: dict[str, Parameter] = {}
    for group in groups:
        for param in group:
            merged[param.qname] = param
    return tuple(merged.values())


def parameters_kv(parameters: LockedParameters) -> dict[str, str]:
    """Qualified name → value for every parameter."""
    return {p.qname: p.value for p in parameters}


def outputs_kv(outputs: CapturedOutputs) -> dict[str, str]:
    """Qualified name → value for every captured output."""
    return {qname: o.value for qname, o in outputs.items()}


def parameters_and_outputs_kv(
    parameters: LockedParameters,
    outputs: CapturedOutputs,
) -> dict[str, str]:
    """Parameters overlaid with captured outputs.

    Outputs are visible by qualified name, and by bare name where no
    parameter claims it.
    """
    kv = parameters_kv(parameters)
    for qname, output in outputs.items():
        kv[qname] = output.value
        kv.setdefault(output.name, output.value)
    return kv


def find_value(
    variable: str,
    component: str,
    depends: list[str],
    kv: dict[str, str],
) -> tuple[str, bool]:
    """Resolve ``variable`` as seen from ``component``.

    Order: ``variable:component``, ``variable:<dep>`` for each declared
    dependency, then ``variable``. An already qualified variable is
    looked up as is.
    """
    if ":" in variable:
        value = kv.get(variable)
        return (value, True) if value is not None else ("", False)

    candidates = []
    if component:
        candidates.append(qualified_name(variable, component))
    candidates.extend(qualified_name(variable, dep) for dep in depends)
    candidates.append(variable)

    for candidate in candidates:
        value = kv.get(candidate)
        if value is not None:
            return value, True
    return "", False


def expand_value(
    what: str,
    value: str,
    kv: dict[str, str],
    component: str = "",
    depends: list[str] | None = None,
) -> tuple[str, list[str]]:
    """Expand every ``${...}`` in ``value`` in a single pass.

    Args:
        what: Name of the thing being expanded, for diagnostics.
        value: The raw value.
        kv: Flattened lookup table.
        component: Scope used for lookups.
        depends: Dependency chain used for lookups.

    Returns:
        ``(expanded, errors)``. Unresolved references and expressions are
        left in place and reported.
    """
    errors: list[str] = []
    deps = depends or []

    def _replace(match: re.Match[str]) -> str:
        variable, is_expression = strip_curly(match.group(0))
        if is_expression:
            errors.append(f"`{what}` expression `{variable}` is not supported")
            return match.group(0)
        substitution, found = find_value(variable, component, deps, kv)
        if not found:
            errors.append(f"`{what} = {value}` refer to unknown substitution `{variable}`")
            return match.group(0)
        return substitution

    return CURLY_EXPRESSION.sub(_replace, value), errors
