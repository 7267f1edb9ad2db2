"""
Component templating — scan, check, then render every template.

Scanning problems abort the component before any file is written;
rendering problems are aggregated across all of the component's files.
"""

from __future__ import annotations

import logging
from pathlib import Path

from stackhub.core.context import RunContext
from stackhub.core.models.manifest import TemplateSetup
from stackhub.core.models.parameters import CapturedOutputs, LockedParameters
from stackhub.core.services.parameters import parameters_and_outputs_kv, parameters_kv
from stackhub.core.services.template_render import (
    add_mustache_compatible_bindings,
    process_template,
)
from stackhub.core.services.template_scan import TemplateKind, resolve_templates

logger = logging.getLogger(__name__)

_MUSTACHE_KINDS = (TemplateKind.MUSTACHE.value, TemplateKind.TRUE_MUSTACHE.value)


def process_templates(
    component_name: str,
    depends: list[str],
    setup: TemplateSetup,
    parameters: LockedParameters,
    outputs: CapturedOutputs | None,
    directory: Path,
    ctx: RunContext | None = None,
) -> list[str]:
    """Render all templates of one component.

    Globs are expanded against parameters only. During a lifecycle pass
    ``outputs`` is None and templates see parameters only; rendering on
    demand passes captured outputs too.

    Returns:
        Every per-file error, in template order.

    Raises:
        TemplateError: Globs cannot be expanded or inputs cannot be opened.
    """
    ctx = ctx or RunContext()
    kv = parameters_kv(parameters)
    templates = resolve_templates(component_name, directory, setup, kv)
    if not templates:
        return []

    if outputs is not None:
        kv = parameters_and_outputs_kv(parameters, outputs)
    # Underscore aliases are visible to Mustache templates only
    mustache_kv = add_mustache_compatible_bindings(kv)

    errors: list[str] = []
    for template in templates:
        template_kv = mustache_kv if template.kind in _MUSTACHE_KINDS else kv
        errors.extend(process_template(template, component_name, depends, template_kv, ctx))

    rendered = len(templates)
    logger.info("Rendered %d template(s) for `%s` (%d error(s))", rendered, component_name, len(errors))
    return errors
