"""
Provides map — which component satisfies which capability.

The map is folded once per run: platform capabilities first, then every
component's ``provides`` in deployment order. Ambiguity (several
providers of one capability) is tolerated here and resolved when a
requirement is consumed.
"""

from __future__ import annotations

import logging

from stackhub.core.context import RunContext
from stackhub.core.errors import ProvideValidationError
from stackhub.core.models.parameters import CapturedOutputs, qualified_name
from stackhub.core.services.outputs import format_captured_outputs

logger = logging.getLogger(__name__)

PROVIDED_BY_PLATFORM = "*platform*"
PROVIDED_BY_ENVIRONMENT = "*environment*"

# Provides map: capability → ordered provider names
Provides = dict[str, list[str]]

# Outputs a component must have captured to claim a capability
IMPLIED_OUTPUTS: dict[str, tuple[str, ...]] = {
    "kubernetes": ("dns.domain",),
}


def merge_platform_provides(provides: Provides, platform_provides: list[str]) -> None:
    """Register the platform sentinel for every platform capability."""
    for capability in platform_provides:
        providers = provides.setdefault(capability, [])
        providers.append(PROVIDED_BY_PLATFORM)


def validate_provide(
    capability: str,
    component_name: str,
    component_outputs: CapturedOutputs,
    ctx: RunContext,
) -> None:
    """Check the outputs implied by ``capability`` were captured.

    Raises:
        ProvideValidationError: An implied output is missing and
            ``ctx.force`` is off.
    """
    for output in IMPLIED_OUTPUTS.get(capability, ()):
        qname = qualified_name(output, component_name)
        if qname in component_outputs:
            continue
        message = (
            f"Component `{component_name}` declared to provide `{capability}` "
            f"but no `{qname}` output found"
        )
        table = "\n".join(format_captured_outputs(component_outputs)) or "\t(no outputs)"
        if not ctx.force:
            raise ProvideValidationError(f"{message}\nOutputs:\n{table}")
        logger.warning("%s (continuing: force)\nOutputs:\n%s", message, table)


def merge_provides(
    provides: Provides,
    component_name: str,
    component_provides: list[str],
    component_outputs: CapturedOutputs,
    ctx: RunContext | None = None,
) -> None:
    """Fold one component's capabilities into the provides map.

    Re-adding a component already listed for a capability is a no-op, so
    a re-deploy of the same component does not create duplicates.
    """
    ctx = ctx or RunContext()
    for capability in component_provides:
        validate_provide(capability, component_name, component_outputs, ctx)

        providers = provides.get(capability)
        if providers is None:
            provides[capability] = [component_name]
        elif component_name not in providers:
            logger.debug(
                "`%s` already provides `%s`, but component `%s` also provides `%s`",
                ", ".join(providers), capability, component_name, capability,
            )
            providers.append(component_name)


def no_environment_provides(provides: Provides) -> Provides:
    """Copy of ``provides`` without the environment sentinel."""
    filtered: Provides = {}
    for capability, providers in provides.items():
        by = [p for p in providers if p != PROVIDED_BY_ENVIRONMENT]
        if by:
            filtered[capability] = by
    return filtered


def parse_requires_tuning(optional: list[str]) -> dict[str, list[str]]:
    """Build the optional-requirements map.

    ``term:component`` makes ``term`` optional for that component only;
    a bare ``term`` makes it optional for every component (``*``).
    Malformed entries (``term:`` or ``:component``) are ignored.
    """
    result: dict[str, list[str]] = {}
    for entry in optional:
        term, sep, component = entry.partition(":")
        if sep and term and component:
            result.setdefault(term, []).append(component)
        elif not sep:
            result.setdefault(term, []).append("*")
        else:
            logger.warning("Ignoring malformed optional requirement `%s`", entry)
    return result


def sprint_deps(provides: Provides) -> str:
    """The provides table, one sorted ``name => a, b`` line per capability."""
    return "\n".join(
        f"\t{name} => {', '.join(provides[name])}" for name in sorted(provides)
    )
