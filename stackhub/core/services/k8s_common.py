"""
Kubernetes setup — point kubectl at the cluster a provider created.

The provider of ``kubernetes`` captures ``dns.domain``; its value is the
kubeconfig context name the cluster was registered under.
"""

from __future__ import annotations

import logging
import subprocess

from stackhub.core.errors import RequirementError
from stackhub.core.models.parameters import CapturedOutputs, LockedParameters, qualified_name
from stackhub.core.services.parameters import parameters_kv

logger = logging.getLogger(__name__)

_CONTEXT_OUTPUT = "dns.domain"


def _run_kubectl(
    *args: str,
    timeout: int = 15,
) -> subprocess.CompletedProcess[str]:
    """Run a kubectl command and return the result."""
    return subprocess.run(
        ["kubectl", *args],
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def kubernetes_context(
    parameters: LockedParameters,
    provider: str,
    outputs: CapturedOutputs,
) -> str:
    """Context name for ``provider``: its captured domain, else the parameter."""
    captured = outputs.get(qualified_name(_CONTEXT_OUTPUT, provider))
    if captured is not None and captured.value:
        return captured.value
    return parameters_kv(parameters).get(_CONTEXT_OUTPUT, "")


def setup_kubernetes(
    parameters: LockedParameters,
    provider: str,
    outputs: CapturedOutputs,
) -> str:
    """Switch kubectl to the provider's context.

    Sentinel providers (``*platform*``, ``*environment*``) keep whatever
    context is current.

    Returns:
        The context switched to, or "" when left unchanged.

    Raises:
        RequirementError: kubectl is missing or the context cannot be used.
    """
    if provider.startswith("*"):
        logger.debug("Kubernetes provided by %s; keeping current context", provider)
        return ""

    context = kubernetes_context(parameters, provider, outputs)
    if not context:
        raise RequirementError(
            f"Kubernetes provided by `{provider}` but no `{_CONTEXT_OUTPUT}` "
            "output or parameter found to select kubeconfig context"
        )

    try:
        result = _run_kubectl("config", "use-context", context)
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        raise RequirementError(f"Unable to run kubectl: {e}") from e

    if result.returncode != 0:
        raise RequirementError(
            f"Unable to switch kubectl to context `{context}`: {result.stderr.strip()}"
        )
    logger.info("Using Kubernetes context `%s` provided by `%s`", context, provider)
    return context
