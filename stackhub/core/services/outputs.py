"""
Output merge & expansion.

Captured outputs from every component are merged into one map keyed by
qualified name; stack-level requested outputs are then resolved against
that map and the locked parameters.
"""

from __future__ import annotations

import logging
import re

from stackhub.core.context import RunContext
from stackhub.core.errors import ExpansionError
from stackhub.core.models.parameters import (
    CapturedOutput,
    CapturedOutputs,
    ExpandedOutput,
    LockedParameters,
    RequestedOutput,
    is_secret_kind,
)
from stackhub.core.services.parameters import (
    CURLY_EXPRESSION,
    outputs_kv,
    parameters_kv,
    require_expansion,
    strip_curly,
)

logger = logging.getLogger(__name__)

UNSUPPORTED = "(unsupported)"

_WRAP_AT = 40


def _wrap(value: str) -> str:
    """Shorten long values for log lines."""
    value = value.strip()
    if len(value) > _WRAP_AT:
        return value[:_WRAP_AT] + "..."
    return value


def merge_output(outputs: CapturedOutputs, add: CapturedOutput) -> None:
    """Insert or overwrite ``add`` by qualified name.

    Overwriting a different non-empty value is logged, except when a plain
    value is replaced by a secret one of the same name.
    """
    qname = add.qname
    current = outputs.get(qname)
    if (
        current is not None
        and current.value != add.value
        and current.value != ""
        and not (current.kind == "" and is_secret_kind(add.kind))
    ):
        logger.info(
            "Output `%s` current value `%s` overridden by new value `%s`",
            qname, _wrap(current.value), _wrap(add.value),
        )
    outputs[qname] = add


def merge_outputs(outputs: CapturedOutputs, to_merge: CapturedOutputs) -> None:
    """Merge every output of ``to_merge`` into ``outputs``."""
    for output in to_merge.values():
        merge_output(outputs, output)


def outputs_from_list(*lists: list[CapturedOutput]) -> CapturedOutputs:
    """Build a captured-outputs map from output lists, in order."""
    outputs: CapturedOutputs = {}
    for group in lists:
        for output in group:
            merge_output(outputs, output)
    return outputs


def format_captured_outputs(outputs: CapturedOutputs) -> list[str]:
    """Sorted ``qname:kind = value`` lines with secrets masked."""
    lines = []
    for qname in sorted(outputs):
        output = outputs[qname]
        value = "(masked)" if output.secret else f"`{_wrap(output.value)}`"
        kind = f":{output.kind}" if output.kind else ""
        lines.append(f"\t{qname}{kind} = {value}")
    return lines


def print_captured_outputs(outputs: CapturedOutputs) -> None:
    """Log the captured outputs table."""
    if not outputs:
        logger.warning("\t(no outputs)")
    for line in format_captured_outputs(outputs):
        logger.warning(line)


def expand_requested_outputs(
    parameters: LockedParameters,
    outputs: CapturedOutputs,
    requested: list[RequestedOutput],
    must_exist: bool,
    ctx: RunContext | None = None,
) -> list[ExpandedOutput]:
    """Resolve stack-level output declarations.

    Each declaration is resolved by exactly one mode, chosen by its shape:

    1. ``name`` contains ``:`` — taken verbatim from captured outputs,
       inheriting the captured kind when none is declared.
    2. ``value`` contains placeholders — each resolved against captured
       outputs, then parameters; expressions become ``(unsupported)``.
    3. anything else — the literal value.

    Outputs that cannot be fully resolved are dropped.

    Raises:
        ExpansionError: A placeholder resolved to a value that itself still
            needs expansion.
    """
    ctx = ctx or RunContext()
    kv_parameters = parameters_kv(parameters)
    kv_outputs = outputs_kv(outputs)

    expanded: list[ExpandedOutput] = []
    dumped = False

    for request in requested:
        kind = request.kind
        template = request.value
        component_output = ":" in request.name

        if not component_output and template == "" and request.name:
            template = f"${{{request.name}}}"

        if component_output:
            if request.value:
                ctx.warn_once(
                    "Stack output `%s` refer to value `%s`, but it will be derived from component outputs",
                    request.name, request.value, log=logger,
                )
            found = request.name in kv_outputs
            value = kv_outputs.get(request.name, "")
            if not found and must_exist:
                logger.warning("Stack output `%s` not found in outputs:", request.name)
                if not dumped:
                    print_captured_outputs(outputs)
                    dumped = True
            if found and kind == "":
                kind = outputs[request.name].kind

        elif require_expansion(template):
            invoked = 0
            resolved = 0

            def _replace(match: re.Match[str]) -> str:
                nonlocal invoked, resolved
                invoked += 1
                variable, is_expression = strip_curly(match.group(0))
                if is_expression:
                    logger.warning(
                        "Stack output `%s = %s` expression `%s` is not supported",
                        request.name, template, variable,
                    )
                    return UNSUPPORTED
                substitution = kv_outputs.get(variable)
                if substitution is None:
                    substitution = kv_parameters.get(variable)
                if substitution is None:
                    if must_exist:
                        logger.warning(
                            "Stack output `%s = %s` refer to unknown substitution `%s`",
                            request.name, template, variable,
                        )
                    return ""
                if require_expansion(substitution):
                    raise ExpansionError(
                        f"Stack output `{request.name} = {template}` refer to substitution "
                        f"`{variable}` that expands to `{substitution}`. This is surely a bug."
                    )
                resolved += 1
                return substitution

            value = CURLY_EXPRESSION.sub(_replace, template)
            found = invoked == resolved

        else:
            value = template
            found = True

        if found:
            expanded.append(
                ExpandedOutput(name=request.name, value=value, kind=kind, brief=request.brief)
            )

    return expanded
