"""
Workspace — a loaded stack with its components and saved state.

Every use case starts here: locate hub.yaml, load the manifests, load
.hub/state.json.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from stackhub.core.config.loader import load_components, load_stack, locate_stack, stack_root
from stackhub.core.models.manifest import ComponentManifest, StackManifest
from stackhub.core.models.state import StackState
from stackhub.core.persistence.state_file import default_state_path, load_state, save_state

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """A stack manifest, its component manifests and the state file."""

    config_path: Path
    root: Path
    stack: StackManifest
    components: dict[str, ComponentManifest] = field(default_factory=dict)
    state: StackState = field(default_factory=StackState)

    @property
    def state_path(self) -> Path:
        return default_state_path(self.root)

    def component_dir(self, name: str) -> Path | None:
        ref = self.stack.get_component(name)
        if ref is None:
            return None
        return self.root / ref.directory

    def save(self) -> None:
        save_state(self.state, self.state_path)


def open_workspace(config_path: Path | None = None) -> Workspace:
    """Load the stack, its components and the state file.

    Raises:
        ConfigError: If a manifest is missing or invalid.
    """
    config_path = locate_stack(config_path)
    root = stack_root(config_path)
    stack = load_stack(config_path)
    components = load_components(stack, root)
    state = load_state(default_state_path(root))
    logger.debug("Opened workspace %s (%d components)", root, len(components))
    return Workspace(
        config_path=config_path,
        root=root,
        stack=stack,
        components=components,
        state=state,
    )
