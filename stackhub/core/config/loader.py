"""
Configuration loader — reads hub.yaml and component manifests.

Stack and component manifests are YAML, validated against the Pydantic
models in ``stackhub.core.models.manifest``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from stackhub.core.errors import StackhubError
from stackhub.core.models.manifest import ComponentManifest, ComponentRef, StackManifest

logger = logging.getLogger(__name__)

STACK_MANIFEST_FILE = "hub.yaml"
COMPONENT_MANIFEST_FILE = "hub-component.yaml"

_TRUTHY = ("1", "true", "yes", "on")


class ConfigError(StackhubError):
    """Raised when a manifest is invalid or missing."""


def env_force() -> bool:
    """``HUB_FORCE`` set to a truthy value."""
    return os.environ.get("HUB_FORCE", "").strip().lower() in _TRUTHY


def find_stack_file(start_dir: Path | None = None) -> Path | None:
    """Search for hub.yaml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to hub.yaml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / STACK_MANIFEST_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Manifest not found: {path}")

    logger.debug("Loading manifest from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def load_stack(path: Path | None = None) -> StackManifest:
    """Load and validate the stack manifest.

    Args:
        path: Explicit path to hub.yaml. If None, searches upward.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    path = locate_stack(path)
    data = _read_yaml(path)
    kind = data.pop("kind", "stack")
    if kind != "stack":
        raise ConfigError(f"{path} declares kind `{kind}`, expected `stack`")

    try:
        stack = StackManifest.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid stack manifest {path}: {e}") from e

    logger.info("Loaded stack '%s' with %d components", stack.meta.name, len(stack.components))
    return stack


def load_component(path: Path) -> ComponentManifest:
    """Load a component manifest from a file or component directory.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path.is_dir():
        path = path / COMPONENT_MANIFEST_FILE

    data = _read_yaml(path)
    data.pop("kind", None)

    try:
        return ComponentManifest.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid component manifest {path}: {e}") from e


def load_components(stack: StackManifest, stack_root: Path) -> dict[str, ComponentManifest]:
    """Load the manifest of every component the stack declares.

    A component without a manifest file gets an empty one.
    """
    manifests: dict[str, ComponentManifest] = {}
    for ref in stack.components:
        manifests[ref.name] = _load_ref(ref, stack_root)
    return manifests


def _load_ref(ref: ComponentRef, stack_root: Path) -> ComponentManifest:
    directory = stack_root / ref.directory
    if not (directory / COMPONENT_MANIFEST_FILE).is_file():
        logger.debug("Component `%s` has no %s", ref.name, COMPONENT_MANIFEST_FILE)
        return ComponentManifest.model_validate({"meta": {"name": ref.name}})

    manifest = load_component(directory)
    if manifest.name != ref.name:
        logger.warning(
            "Component `%s` manifest declares name `%s`; using `%s`",
            ref.name, manifest.name, ref.name,
        )
        manifest = manifest.model_copy(update={"meta": manifest.meta.model_copy(update={"name": ref.name})})
    return manifest


def stack_root(config_path: Path) -> Path:
    """Get the stack root directory from a manifest path."""
    return config_path.parent.resolve()


def locate_stack(config_path: Path | None = None) -> Path:
    """Explicit manifest path, or the nearest hub.yaml above cwd.

    Raises:
        ConfigError: If no manifest can be found.
    """
    if config_path is None:
        config_path = find_stack_file()
    if config_path is None:
        raise ConfigError(f"No {STACK_MANIFEST_FILE} found. Specify one with --config.")
    return config_path
