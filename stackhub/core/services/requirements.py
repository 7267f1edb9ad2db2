"""
Requirement resolution — match each ``requires`` term to a provider.

Flow per component:
    requires → provider lookup → (gate on unmet optionals) → setup calls

Setup is an explicit mapping from the closed ``Requirement`` set to a
handler. Terms outside that set are treated as documentation: they are
warned about once and otherwise ignored.

Optional requirements gate the whole component. If any optional term is
unmet, no setup runs for *any* of its requirements, including ones that
were satisfied; the caller gets the unmet list and decides whether to
skip the component. This is the conditional-activation mechanism, so
it is all-or-nothing on purpose.
"""

from __future__ import annotations

import logging
from enum import StrEnum

from stackhub.core.context import RunContext
from stackhub.core.errors import RequirementError
from stackhub.core.models.parameters import CapturedOutputs, LockedParameters
from stackhub.core.services.k8s_common import setup_kubernetes
from stackhub.core.services.provides import PROVIDED_BY_ENVIRONMENT, Provides, sprint_deps

logger = logging.getLogger(__name__)

# Parameter values that switch an optional component off
FALSE_PARAMETER_VALUES = ("", "false", "0", "no", "(unknown)")


class Requirement(StrEnum):
    """Requirement terms the engine knows how to set up."""

    KUBERNETES = "kubernetes"
    KUBECTL = "kubectl"
    AWS = "aws"
    AZURE = "azure"
    GCP = "gcp"
    GCS = "gcs"
    TILLER = "tiller"
    HELM = "helm"
    VAULT = "vault"
    INGRESS = "ingress"
    TLS_INGRESS = "tls-ingress"


class Setup(StrEnum):
    """What satisfying a requirement involves."""

    CLUSTER = "cluster"            # configure kubectl context
    PREREQUISITE = "prerequisite"  # verify local tooling


SETUPS: dict[Requirement, Setup] = {
    Requirement.KUBERNETES: Setup.CLUSTER,
    Requirement.KUBECTL: Setup.CLUSTER,
    Requirement.AWS: Setup.PREREQUISITE,
    Requirement.AZURE: Setup.PREREQUISITE,
    Requirement.GCP: Setup.PREREQUISITE,
    Requirement.GCS: Setup.PREREQUISITE,
    Requirement.TILLER: Setup.PREREQUISITE,
    Requirement.HELM: Setup.PREREQUISITE,
    Requirement.VAULT: Setup.PREREQUISITE,
    Requirement.INGRESS: Setup.PREREQUISITE,
    Requirement.TLS_INGRESS: Setup.PREREQUISITE,
}


def _is_optional_for(term: str, component_name: str, maybe_optional: dict[str, list[str]]) -> bool:
    optional_for = maybe_optional.get(term)
    if not optional_for:
        return False
    return component_name in optional_for or "*" in optional_for


def prepare_component_requires(
    provided: Provides,
    component_name: str,
    requires: list[str],
    parameters: LockedParameters,
    outputs: CapturedOutputs,
    maybe_optional: dict[str, list[str]],
    ctx: RunContext | None = None,
) -> list[str]:
    """Resolve a component's requirements and run their setups.

    With several providers for one term, the last registered wins.

    Returns:
        Optional terms that are not provided. When non-empty, no setup
        was performed.

    Raises:
        RequirementError: A mandatory term has no provider.
    """
    ctx = ctx or RunContext()
    setups: list[tuple[str, str]] = []
    optional_not_provided: list[str] = []

    for term in requires:
        by = provided.get(term)
        if not by:
            if _is_optional_for(term, component_name, maybe_optional):
                optional_not_provided.append(term)
                logger.info("Optional requirement `%s` is not provided", term)
                continue
            raise RequirementError(
                f"Component `{component_name}` requires `{', '.join(requires)}` "
                f"but only following provides are currently known:\n{sprint_deps(provided)}"
            )

        provider = by[-1]
        if len(by) == 1:
            logger.debug("Requirement `%s` provided by `%s`", term, provider)
        else:
            logger.warning(
                "Requirement `%s` provided by multiple components `%s`, only `%s` will be used",
                term, ", ".join(by), provider,
            )
        setups.append((term, provider))

    if not optional_not_provided:
        for term, provider in setups:
            setup_requirement(term, provider, parameters, outputs, ctx)
    return optional_not_provided


def setup_requirement(
    term: str,
    provider: str,
    parameters: LockedParameters,
    outputs: CapturedOutputs,
    ctx: RunContext | None = None,
) -> None:
    """Prepare the environment for one satisfied requirement.

    Raises:
        RequirementError: A known prerequisite check failed.
    """
    ctx = ctx or RunContext()
    try:
        requirement = Requirement(term)
    except ValueError:
        ctx.warn_once("Don't know how to setup requirement `%s`", term, log=logger)
        return

    match SETUPS[requirement]:
        case Setup.CLUSTER:
            setup_kubernetes(parameters, provider, outputs)
        case Setup.PREREQUISITE:
            known, error = ctx.check_require(term)
            if not known:
                logger.info("Assuming `%s` requirement is setup", term)
            elif error:
                raise RequirementError(f"`{term}` requirement cannot be satisfied: {error}")


def check_stack_requires(
    requires: list[str],
    maybe_optional: dict[str, list[str]],
    ctx: RunContext | None = None,
) -> Provides:
    """Verify stack-level requirements against the local environment.

    Returns:
        Provides map with ``*environment*`` as the provider of each
        verified term.

    Raises:
        RequirementError: A check failed, or a mandatory term has no
            checker.
    """
    ctx = ctx or RunContext()
    provided: Provides = {}
    for term in requires:
        known, error = ctx.check_require(term)
        if known:
            if error:
                raise RequirementError(f"`{term}` requirement cannot be satisfied: {error}")
        else:
            optional_for = maybe_optional.get(term)
            if optional_for is None:
                raise RequirementError(f"Cannot check for `requires: {term}`: no implementation")
            logger.debug("Requirement `%s` is optional for %s", term, optional_for)
            continue
        provided[term] = [PROVIDED_BY_ENVIRONMENT]
    return provided


def calculate_optional_false_parameters(
    component_name: str,
    parameters: LockedParameters,
    optional_requires: dict[str, list[str]],
    ctx: RunContext | None = None,
) -> list[str]:
    """Optional parameter terms that switch ``component_name`` off.

    An optional term containing ``.`` names a parameter. It counts as
    unmet when the parameter visible to the component holds a falsy
    value, or when it is absent and the term targets this component
    explicitly (not ``*``).
    """
    ctx = ctx or RunContext()
    false_parameters: list[str] = []
    for term, optional_for_list in optional_requires.items():
        if "." not in term:
            continue
        for optional_for in optional_for_list:
            if optional_for not in ("*", component_name):
                continue
            exists = False
            for param in parameters:
                if param.name != term or param.component not in ("", component_name):
                    continue
                exists = True
                if param.value in FALSE_PARAMETER_VALUES:
                    false_parameters.append(param.qname)
                    if optional_for == "*":
                        ctx.warn_once(
                            "Optional parameter `lifecycle.requires.optional = %s` targets all "
                            "components as wildcard;\n\tYou may want to narrow it to "
                            "`%s:component`",
                            term, term, log=logger,
                        )
            if not exists and optional_for != "*":
                false_parameters.append(term)
    return false_parameters
