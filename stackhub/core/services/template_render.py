"""
Template rendering — substitute resolved values into template files.

Regex dialects (``curly``, ``mustache``) replace each placeholder in a
single pass; the full dialects hand the content to Mustache (pystache)
or Jinja2. Per-file problems are collected, never raised, so one run
reports every broken template of a component at once.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import re
import stat
from pathlib import Path
from typing import Callable

import jinja2
import pystache
from pystache.context import KeyNotFoundError
from pystache.parser import ParsingError

from stackhub.core.context import RunContext
from stackhub.core.services.parameters import find_value, require_expansion
from stackhub.core.services.template_scan import TEMPLATE_SUFFIX, TemplateKind, TemplateRef

logger = logging.getLogger(__name__)

UNKNOWN = "(unknown)"

CURLY_REPLACEMENT = re.compile(r"\$\{[a-zA-Z0-9_.|:/-]+\}")
MUSTACHE_REPLACEMENT = re.compile(r"\{\{[a-zA-Z0-9_.|:/-]+\}\}")


def strip_curly(match: str) -> str:
    return match[2:-1]


def strip_mustache(match: str) -> str:
    return match[2:-2]


def value_encoding(variable: str) -> tuple[str, str]:
    """Split ``name/encoding``; a leading or trailing ``/`` is not a split."""
    i = variable.find("/")
    if i <= 0 or i == len(variable) - 1:
        return variable, ""
    return variable[:i], variable[i + 1:]


def _encode(
    substitution: str,
    encoding: str,
    variable: str,
    filename: str,
) -> str:
    if encoding == "base64":
        return base64.b64encode(substitution.encode()).decode()
    if encoding == "unbase64":
        try:
            return base64.b64decode("".join(substitution.split()), validate=True).decode()
        except (binascii.Error, UnicodeDecodeError) as e:
            logger.warning(
                "Unable to decode `%s` base64 value `%s`: %s", variable, substitution.strip(), e,
            )
            return substitution
    logger.warning(
        "Unknown encoding `%s` processing template `%s` substitution `%s`",
        encoding, filename, variable,
    )
    return substitution


def process_replacement(
    content: str,
    filename: str,
    component_name: str,
    depends: list[str],
    kv: dict[str, str],
    replacement: re.Pattern[str],
    strip: Callable[[str], str],
    ctx: RunContext | None = None,
) -> tuple[str, list[str]]:
    """Replace every placeholder matched by ``replacement``.

    Unknown variables become ``(unknown)`` and are reported; every other
    placeholder is still substituted.

    Returns:
        ``(rendered content, errors)``.
    """
    ctx = ctx or RunContext()
    errors: list[str] = []
    replaced = False

    def _replace(match: re.Match[str]) -> str:
        nonlocal replaced
        replaced = True
        variable, encoding = value_encoding(strip(match.group(0)))
        substitution, found = find_value(variable, component_name, depends, kv)
        if not found:
            errors.append(f"Template `{filename}` refer to unknown substitution `{variable}`")
            substitution = UNKNOWN
        elif require_expansion(substitution):
            ctx.warn_once(
                "Template `%s` substitution `%s` refer to a value `%s` that is not expanded",
                filename, variable, substitution, log=logger,
            )
        logger.debug("--- %s | %s => %s", variable, component_name, substitution)

        if encoding:
            return _encode(substitution, encoding, variable, filename)
        return substitution.strip()

    out = replacement.sub(_replace, content)
    if not replaced:
        logger.warning("No substitutions found in template `%s`", filename)
    return out, errors


def add_mustache_compatible_bindings(kv: dict[str, str]) -> dict[str, str]:
    """Alias dotted keys with underscores (``a.b`` → ``a_b``)."""
    aliased = dict(kv)
    for key, value in kv.items():
        if "." in key:
            aliased[key.replace(".", "_")] = value
    return aliased


def process_mustache(content: str, filename: str, kv: dict[str, str]) -> tuple[str, list[str]]:
    """Render full Mustache; a missing key is an error."""
    renderer = pystache.Renderer(missing_tags="strict")
    try:
        return renderer.render(content, kv), []
    except ParsingError as e:
        return "", [f"Unable to parse mustache template `{filename}`: {e}"]
    except KeyNotFoundError as e:
        return "", [f"Unable to render mustache template `{filename}`: {e}"]


def process_jinja(content: str, filename: str, kv: dict[str, str]) -> tuple[str, list[str]]:
    """Render Jinja2 with strict undefined handling.

    Values are reachable as ``params["dns.domain"]`` or by their
    underscore alias (``dns_domain``).
    """
    env = jinja2.Environment(
        autoescape=False,
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )
    try:
        template = env.from_string(content)
        return template.render({**add_mustache_compatible_bindings(kv), "params": kv}), []
    except jinja2.TemplateSyntaxError as e:
        return "", [f"Unable to parse jinja2 template `{filename}`: {e}"]
    except jinja2.UndefinedError as e:
        return "", [f"Unable to render jinja2 template `{filename}`: {e}"]


def output_path(filename: str) -> str:
    """Rendered file path: the template path without ``.template``."""
    if filename.endswith(TEMPLATE_SUFFIX):
        return filename[: -len(TEMPLATE_SUFFIX)]
    return filename


def _copy_mode(source_mode: int | None, out_path: str, component_name: str) -> None:
    if source_mode is None:
        return
    try:
        os.chmod(out_path, stat.S_IMODE(source_mode))
    except OSError as e:
        logger.warning(
            "Unable to chmod `%s` component template output `%s`: %s", component_name, out_path, e,
        )


def process_template(
    template: TemplateRef,
    component_name: str,
    depends: list[str],
    kv: dict[str, str],
    ctx: RunContext | None = None,
) -> list[str]:
    """Render one template file next to its source.

    Returns:
        Errors for this file (empty on success).
    """
    path = Path(template.filename)
    try:
        content = path.read_bytes().decode("utf-8", errors="surrogateescape")
    except OSError as e:
        return [f"Unable to read `{component_name}` component template content `{path}`: {e}"]

    try:
        source_mode: int | None = path.stat().st_mode
    except OSError as e:
        logger.warning(
            "Unable to stat `%s` component template input `%s`: %s", component_name, path, e,
        )
        source_mode = None

    out_path = output_path(template.filename)

    try:
        kind = TemplateKind(template.kind)
    except ValueError:
        return [
            f"Error processing `{component_name}` component template `{out_path}`: "
            f"unknown `{template.kind}` template kind"
        ]

    match kind:
        case TemplateKind.CURLY:
            rendered, errors = process_replacement(
                content, template.filename, component_name, depends, kv,
                CURLY_REPLACEMENT, strip_curly, ctx,
            )
        case TemplateKind.MUSTACHE:
            rendered, errors = process_replacement(
                content, template.filename, component_name, depends, kv,
                MUSTACHE_REPLACEMENT, strip_mustache, ctx,
            )
        case TemplateKind.TRUE_MUSTACHE:
            rendered, errors = process_mustache(content, template.filename, kv)
        case TemplateKind.JINJA2:
            rendered, errors = process_jinja(content, template.filename, kv)

    try:
        with open(out_path, "w", encoding="utf-8", errors="surrogateescape") as out:
            _copy_mode(source_mode, out_path, component_name)
            out.write(rendered)
    except OSError as e:
        errors.append(
            f"Unable to write `{component_name}` component template output `{out_path}`: {e}"
        )
    return errors
