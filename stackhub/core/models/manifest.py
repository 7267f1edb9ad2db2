"""
Manifest models — what stacks and components declare.

Loaded from ``hub.yaml`` (the stack) and ``hub-component.yaml`` (each
component). Declarations are intent: requirement terms, provided
capabilities, parameters, template targets. Resolution happens later in
the services layer.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from stackhub.core.models.parameters import Parameter, RequestedOutput


class Meta(BaseModel):
    """Manifest identity."""

    name: str
    brief: str = ""
    version: str = ""


class TemplateTarget(BaseModel):
    """A group of template files sharing one substitution kind.

    ``files`` and ``directories`` hold globs relative to the component
    directory and may contain ``${...}`` placeholders.
    """

    kind: str = ""
    files: list[str] = Field(default_factory=list)
    directories: list[str] = Field(default_factory=list)


class TemplateSetup(TemplateTarget):
    """The primary template target plus independently kinded extras."""

    extra: list[TemplateTarget] = Field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not (self.files or self.directories or self.extra)


class ComponentSource(BaseModel):
    """Where the component lives, relative to the stack manifest."""

    dir: str = ""


class ComponentRef(BaseModel):
    """A component reference declared in the stack manifest."""

    name: str
    source: ComponentSource = Field(default_factory=ComponentSource)
    depends: list[str] = Field(default_factory=list)

    @property
    def directory(self) -> str:
        return self.source.dir or f"components/{self.name}"


class ComponentManifest(BaseModel):
    """A component's own declarations (hub-component.yaml)."""

    meta: Meta
    requires: list[str] = Field(default_factory=list)
    provides: list[str] = Field(default_factory=list)
    parameters: list[Parameter] = Field(default_factory=list)
    outputs: list[RequestedOutput] = Field(default_factory=list)
    templates: TemplateSetup = Field(default_factory=TemplateSetup)

    @property
    def name(self) -> str:
        return self.meta.name


class PlatformSetup(BaseModel):
    """Capabilities the target platform already offers."""

    provides: list[str] = Field(default_factory=list)


class RequiresTuning(BaseModel):
    """``optional`` entries are ``term`` or ``term:component``."""

    optional: list[str] = Field(default_factory=list)


class Lifecycle(BaseModel):
    """Deployment ordering and requirement tuning."""

    order: list[str] = Field(default_factory=list)
    requires: RequiresTuning = Field(default_factory=RequiresTuning)


class StackManifest(BaseModel):
    """Root stack declaration — loaded from hub.yaml."""

    meta: Meta
    requires: list[str] = Field(default_factory=list)
    platform: PlatformSetup = Field(default_factory=PlatformSetup)
    lifecycle: Lifecycle = Field(default_factory=Lifecycle)
    components: list[ComponentRef] = Field(default_factory=list)
    parameters: list[Parameter] = Field(default_factory=list)
    outputs: list[RequestedOutput] = Field(default_factory=list)

    def get_component(self, name: str) -> ComponentRef | None:
        """Look up a component reference by name."""
        for comp in self.components:
            if comp.name == name:
                return comp
        return None

    def deployment_order(self) -> list[str]:
        """Component names in deployment order.

        ``lifecycle.order`` wins when set; otherwise declaration order.
        """
        if self.lifecycle.order:
            return list(self.lifecycle.order)
        return [c.name for c in self.components]
