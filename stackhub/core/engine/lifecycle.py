"""
Lifecycle engine — one resolution pass over the whole stack.

Flow:
    stack requires → platform provides → per component:
        lock parameters → optional gate → requirement setup → templates
        → fold provides and captured outputs
    → expand stack outputs

Nothing is deployed here; the pass resolves what every component would
see and renders its templates with parameters only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from stackhub.core.context import RunContext
from stackhub.core.errors import TemplateError
from stackhub.core.models.manifest import ComponentManifest, ComponentRef, StackManifest
from stackhub.core.models.parameters import (
    CapturedOutputs,
    ExpandedOutput,
    LockedParameters,
    Parameter,
)
from stackhub.core.models.state import StackState
from stackhub.core.services.outputs import expand_requested_outputs, merge_outputs
from stackhub.core.services.parameters import (
    expand_value,
    lock_parameters,
    parameters_kv,
    require_expansion,
)
from stackhub.core.services.provides import (
    Provides,
    merge_platform_provides,
    merge_provides,
    parse_requires_tuning,
)
from stackhub.core.services.requirements import (
    calculate_optional_false_parameters,
    check_stack_requires,
    prepare_component_requires,
)
from stackhub.core.services.template_ops import process_templates

logger = logging.getLogger(__name__)

MAX_EXPANSION_DEPTH = 10


@dataclass
class ComponentPlan:
    """What the pass decided for one component."""

    name: str
    status: str = "planned"  # planned, skipped, failed
    unmet_optional: list[str] = field(default_factory=list)
    template_errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status,
            "unmet_optional": self.unmet_optional,
            "template_errors": self.template_errors,
        }


@dataclass
class PlanReport:
    """Result of a lifecycle pass."""

    stack_name: str = ""
    components: list[ComponentPlan] = field(default_factory=list)
    provides: Provides = field(default_factory=dict)
    outputs: list[ExpandedOutput] = field(default_factory=list)

    @property
    def planned(self) -> int:
        return sum(1 for c in self.components if c.status == "planned")

    @property
    def skipped(self) -> int:
        return sum(1 for c in self.components if c.status == "skipped")

    @property
    def failed(self) -> int:
        return sum(1 for c in self.components if c.status == "failed")

    @property
    def status(self) -> str:
        return "ok" if self.failed == 0 else "failed"

    def to_dict(self) -> dict:
        return {
            "stack_name": self.stack_name,
            "status": self.status,
            "planned": self.planned,
            "skipped": self.skipped,
            "failed": self.failed,
            "components": [c.to_dict() for c in self.components],
            "provides": {k: list(v) for k, v in sorted(self.provides.items())},
            "outputs": [o.model_dump(mode="json") for o in self.outputs],
        }


def component_parameters(
    stack: StackManifest,
    manifest: ComponentManifest,
) -> LockedParameters:
    """Stack parameters plus the component's own defaults.

    A component default is scoped to the component and applies only when
    the stack sets neither the bare name nor ``name:component``.
    """
    name = manifest.name
    stack_names = {p.name for p in stack.parameters if p.component in ("", name)}
    defaults = [
        Parameter(name=p.name, component=name, value=p.value, kind=p.kind)
        for p in manifest.parameters
        if p.name not in stack_names
    ]
    return lock_parameters(stack.parameters, defaults)


def _expand_chain(
    param: Parameter,
    kv: dict[str, str],
    component_name: str,
    depends: list[str] | None,
) -> tuple[str, list[str]]:
    value = param.value
    seen = {value}
    for _ in range(MAX_EXPANSION_DEPTH):
        value, errors = expand_value(param.qname, value, kv, component_name, depends)
        if errors or not require_expansion(value):
            return value, errors
        if value in seen:
            return value, [f"`{param.qname} = {param.value}` references form a cycle"]
        seen.add(value)
    return value, [
        f"`{param.qname} = {param.value}` is not expanded after "
        f"{MAX_EXPANSION_DEPTH} levels: `{value}`"
    ]


def expand_parameters(
    parameters: LockedParameters,
    component_name: str = "",
    depends: list[str] | None = None,
) -> LockedParameters:
    """Expand ``${...}`` references between parameters.

    References are followed through other parameters until the value is
    plain. Unknown references, cycles and chains deeper than
    ``MAX_EXPANSION_DEPTH`` are logged and the value is left partially
    expanded.
    """
    kv = parameters_kv(parameters)
    expanded: list[Parameter] = []
    for param in parameters:
        if not require_expansion(param.value):
            expanded.append(param)
            continue
        value, errors = _expand_chain(param, kv, component_name, depends)
        for error in errors:
            logger.warning("%s", error)
        expanded.append(param.model_copy(update={"value": value}))
    return tuple(expanded)


def _plan_component(
    ref: ComponentRef,
    manifest: ComponentManifest,
    stack: StackManifest,
    provides: Provides,
    maybe_optional: dict[str, list[str]],
    outputs: CapturedOutputs,
    state: StackState,
    base_dir: Path,
    ctx: RunContext,
) -> ComponentPlan:
    name = ref.name
    plan = ComponentPlan(name=name)
    logger.info("Planning component `%s`", name)

    parameters = expand_parameters(component_parameters(stack, manifest), name, ref.depends)

    # A switched-off component gets no requirement setup at all
    unmet = calculate_optional_false_parameters(name, parameters, maybe_optional, ctx)
    if not unmet:
        unmet = prepare_component_requires(
            provides, name, manifest.requires, parameters, outputs, maybe_optional, ctx,
        )

    if unmet:
        plan.status = "skipped"
        plan.unmet_optional = unmet
        logger.warning(
            "Skipping component `%s` due to unmet optional requirements: %s",
            name, ", ".join(unmet),
        )
        return plan

    errors = process_templates(
        name, ref.depends, manifest.templates, parameters, None, base_dir / ref.directory, ctx,
    )
    if errors:
        plan.template_errors = errors
        message = f"Failed to process `{name}` component templates"
        if not ctx.force:
            raise TemplateError(message, errors)
        plan.status = "failed"
        logger.error("%s (continuing: force):\n\t%s", message, "\n\t".join(errors))

    component_outputs = state.component_outputs(name)
    merge_provides(provides, name, manifest.provides, component_outputs, ctx)
    merge_outputs(outputs, component_outputs)
    return plan


def plan_stack(
    stack: StackManifest,
    components: dict[str, ComponentManifest],
    state: StackState,
    ctx: RunContext | None = None,
    base_dir: Path | None = None,
) -> PlanReport:
    """Run one lifecycle pass over every component in deployment order.

    Component status is recorded into ``state``; saving it is the
    caller's job.

    Raises:
        RequirementError: A mandatory requirement is missing or failed.
        ProvideValidationError: A provide lacks its implied outputs.
        TemplateError: Templates failed and ``ctx.force`` is off.
        ExpansionError: A stack output resolved to an unexpanded value.
    """
    ctx = ctx or RunContext()
    base_dir = base_dir or ctx.project_root or Path.cwd()
    report = PlanReport(stack_name=stack.meta.name)

    maybe_optional = parse_requires_tuning(stack.lifecycle.requires.optional)
    provides = check_stack_requires(stack.requires, maybe_optional, ctx)
    merge_platform_provides(provides, stack.platform.provides)

    outputs: CapturedOutputs = {}

    for name in stack.deployment_order():
        ref = stack.get_component(name)
        if ref is None:
            logger.warning("Lifecycle order names unknown component `%s`", name)
            continue
        manifest = components.get(name) or ComponentManifest.model_validate({"meta": {"name": name}})

        plan = _plan_component(
            ref, manifest, stack, provides, maybe_optional, outputs, state, base_dir, ctx,
        )
        report.components.append(plan)
        state.set_component_state(name, status=plan.status, unmet_optional=plan.unmet_optional)

    report.provides = provides
    report.outputs = expand_requested_outputs(
        expand_parameters(lock_parameters(stack.parameters)),
        outputs,
        stack.outputs,
        must_exist=False,
        ctx=ctx,
    )

    state.stack_name = stack.meta.name
    state.stack_outputs = report.outputs

    logger.info(
        "Planned stack `%s`: %d planned, %d skipped, %d failed",
        report.stack_name, report.planned, report.skipped, report.failed,
    )
    return report
