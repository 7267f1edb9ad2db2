"""
Template scanning — turn a component's template setup into file refs.

Steps:
    1. Expand ``${...}`` in the setup's globs against locked parameters
    2. Resolve plain files (with the ``.template`` fallback) and globs
    3. Stat-check every ref before anything is rendered
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from stackhub.core.errors import TemplateError
from stackhub.core.models.manifest import TemplateSetup, TemplateTarget
from stackhub.core.services.parameters import expand_value, require_expansion

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".template"


class TemplateKind(StrEnum):
    """Substitution dialects.

    CURLY       ``${name}`` / ``${name/encoding}`` (default)
    MUSTACHE    ``{{name}}`` / ``{{name/encoding}}``
    TRUE_MUSTACHE  full Mustache syntax
    JINJA2      host-native templating
    """

    CURLY = "curly"
    MUSTACHE = "mustache"
    TRUE_MUSTACHE = "_mustache"
    JINJA2 = "jinja2"


KINDS = [k.value for k in TemplateKind]


@dataclass(frozen=True)
class TemplateRef:
    """One template file and the dialect to render it with."""

    filename: str
    kind: str


def check_kind(component_name: str, kind: str) -> str:
    """Default an empty kind to ``curly``; warn on unrecognized ones.

    Unrecognized kinds are returned as is so rendering can report them
    per file.
    """
    if kind == "":
        return TemplateKind.CURLY.value
    if kind not in KINDS:
        logger.warning(
            "Component `%s` template kind `%s` not recognized; supported %s",
            component_name, kind, KINDS,
        )
    return kind


def is_glob(path: str) -> bool:
    return "*" in path or "[" in path


def _expand_globs(globs: list[str], kv: dict[str, str], section: str) -> list[str]:
    expanded = []
    for i, glob in enumerate(globs):
        if not require_expansion(glob):
            expanded.append(glob)
            continue
        value, errors = expand_value(f"templates.{section}.{i}", glob, kv)
        if errors:
            raise TemplateError(
                "Failed to expand template globs:\n\t" + "\n\t".join(errors), errors,
            )
        expanded.append(value)
    return expanded


def expand_template_setup(setup: TemplateSetup, kv: dict[str, str]) -> TemplateSetup:
    """Expand placeholders in every glob of ``setup``, extras included.

    Raises:
        TemplateError: A glob refers to an unknown parameter.
    """
    extra = []
    for j, target in enumerate(setup.extra):
        extra.append(
            TemplateTarget(
                kind=target.kind,
                files=_expand_globs(target.files, kv, f"extra.{j}.files"),
                directories=_expand_globs(target.directories, kv, f"extra.{j}.directories"),
            )
        )
    return TemplateSetup(
        kind=setup.kind,
        files=_expand_globs(setup.files, kv, "files"),
        directories=_expand_globs(setup.directories, kv, "directories"),
        extra=extra,
    )


def _plain_files(base_dir: Path, files: list[str], kind: str) -> list[TemplateRef]:
    refs = []
    for file in files:
        if is_glob(file):
            continue
        path = base_dir / file
        if not file.endswith(TEMPLATE_SUFFIX):
            candidate = base_dir / (file + TEMPLATE_SUFFIX)
            if candidate.is_file():
                path = candidate
        refs.append(TemplateRef(filename=str(path), kind=kind))
    return refs


def _scan_directories(
    component_name: str,
    base_dir: Path,
    directories: list[str],
    files: list[str],
    kind: str,
) -> list[TemplateRef]:
    if not files and directories:
        files = ["*"]
    if not directories:
        directories = [""]

    refs = []
    for directory in directories:
        for file in files:
            if not is_glob(file):
                continue
            pattern = "/".join(p for p in (directory.strip("/"), file) if p)
            logger.debug("Scanning for `%s` templates `%s`", component_name, base_dir / pattern)
            matches = sorted(base_dir.glob(pattern))
            if not matches:
                logger.warning(
                    "No matches found for `%s` component template glob `%s`",
                    component_name, base_dir / pattern,
                )
            refs.extend(TemplateRef(filename=str(m), kind=kind) for m in matches)
    return refs


def scan_templates(component_name: str, base_dir: Path, setup: TemplateSetup) -> list[TemplateRef]:
    """Resolve ``setup`` (already expanded) to template refs on disk."""
    refs: list[TemplateRef] = []
    targets: list[TemplateTarget] = [setup, *setup.extra]
    for target in targets:
        kind = check_kind(component_name, target.kind)
        refs.extend(_plain_files(base_dir, target.files, kind))
        refs.extend(
            _scan_directories(component_name, base_dir, target.directories, target.files, kind)
        )
    return refs


def check_stat(filenames: list[str]) -> list[tuple[str, str]]:
    """Every file that cannot be rendered, with the reason."""
    cannot: list[tuple[str, str]] = []
    for filename in filenames:
        try:
            if Path(filename).is_dir():
                cannot.append((filename, "is a directory"))
                continue
            with open(filename, "rb"):
                pass
        except OSError as e:
            cannot.append((filename, e.strerror or str(e)))
    return cannot


def print_templates(refs: list[TemplateRef]) -> None:
    for ref in refs:
        logger.info("\t%s (%s)", ref.filename, ref.kind)


def resolve_templates(
    component_name: str,
    base_dir: Path,
    setup: TemplateSetup,
    kv: dict[str, str],
) -> list[TemplateRef]:
    """Expand, scan and stat-check a component's templates.

    Raises:
        TemplateError: Globs cannot be expanded, or some inputs cannot be
            opened (all of them are listed).
    """
    expanded = expand_template_setup(setup, kv)
    refs = scan_templates(component_name, base_dir, expanded)

    if refs:
        logger.info("Component `%s` templates:", component_name)
        print_templates(refs)
    elif not setup.empty:
        logger.info("No templates for component `%s`", component_name)

    cannot = check_stat([r.filename for r in refs])
    if cannot:
        diag = [f"`{filename}`: {reason}" for filename, reason in cannot]
        raise TemplateError(
            f"Unable to open `{component_name}` component template input(s):\n\t"
            + "\n\t".join(diag),
            diag,
        )
    return refs
