"""
Domain models — Pydantic types for stack resolution.

All models are re-exported here for convenient access:

    from stackhub.core.models import Parameter, CapturedOutput, StackManifest
"""

from stackhub.core.models.manifest import (
    ComponentManifest,
    ComponentRef,
    ComponentSource,
    Lifecycle,
    Meta,
    PlatformSetup,
    RequiresTuning,
    StackManifest,
    TemplateSetup,
    TemplateTarget,
)
from stackhub.core.models.parameters import (
    CapturedOutput,
    CapturedOutputs,
    ExpandedOutput,
    LockedParameters,
    Parameter,
    RequestedOutput,
    qualified_name,
)
from stackhub.core.models.state import ComponentState, StackState

__all__ = [
    # parameters.py
    "CapturedOutput",
    "CapturedOutputs",
    # manifest.py
    "ComponentManifest",
    "ComponentRef",
    "ComponentSource",
    # state.py
    "ComponentState",
    "ExpandedOutput",
    "Lifecycle",
    "LockedParameters",
    "Meta",
    "Parameter",
    "PlatformSetup",
    "RequestedOutput",
    "RequiresTuning",
    "StackManifest",
    "StackState",
    "TemplateSetup",
    "TemplateTarget",
    "qualified_name",
]
