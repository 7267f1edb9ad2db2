"""
Render use case — render one component's templates on demand.

Unlike the lifecycle pass, templates see captured outputs too.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from stackhub.core.context import RunContext
from stackhub.core.engine.lifecycle import component_parameters, expand_parameters
from stackhub.core.errors import StackhubError, TemplateError
from stackhub.core.services.template_ops import process_templates
from stackhub.core.use_cases.workspace import open_workspace

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    """Result of rendering a component."""

    component: str = ""
    directory: Path | None = None
    errors: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.errors

    def to_dict(self) -> dict:
        result: dict = {"component": self.component, "ok": self.ok}
        if self.directory:
            result["directory"] = str(self.directory)
        if self.error:
            result["error"] = self.error
        if self.errors:
            result["errors"] = self.errors
        return result


def render_component(
    component: str,
    config_path: Path | None = None,
    ctx: RunContext | None = None,
) -> RenderResult:
    """Render the templates of ``component`` with parameters and outputs."""
    result = RenderResult(component=component)
    ctx = ctx or RunContext()

    try:
        ws = open_workspace(config_path)
    except StackhubError as e:
        result.error = str(e)
        return result

    ref = ws.stack.get_component(component)
    if ref is None:
        result.error = f"Component `{component}` is not declared in {ws.config_path}"
        return result

    directory = ws.component_dir(component)
    result.directory = directory
    manifest = ws.components[component]
    parameters = expand_parameters(
        component_parameters(ws.stack, manifest), component, ref.depends,
    )

    try:
        result.errors = process_templates(
            component,
            ref.depends,
            manifest.templates,
            parameters,
            ws.state.captured_outputs(),
            directory,
            ctx,
        )
    except TemplateError as e:
        result.error = str(e)
        result.errors = e.errors
    if result.ok:
        logger.info("Rendered `%s` in %s", component, directory)
    return result
