"""
State file persistence — captured outputs between runs.

State is stored as JSON in .hub/state.json next to hub.yaml. Writes are
atomic (temp file, then rename).
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from pydantic import ValidationError

from stackhub.core.models.state import StackState

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = ".hub"
DEFAULT_STATE_FILE = "state.json"


def default_state_path(stack_root: Path) -> Path:
    """Get the default state file path for a stack."""
    return stack_root / DEFAULT_STATE_DIR / DEFAULT_STATE_FILE


def load_state(path: Path) -> StackState:
    """Load stack state from a JSON file.

    Returns:
        StackState model. A missing or corrupt file yields a fresh state.
    """
    if not path.is_file():
        logger.info("No state file at %s — starting fresh", path)
        return StackState()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        state = StackState.model_validate(data)
        logger.debug("Loaded state from %s (updated_at=%s)", path, state.updated_at)
        return state
    except json.JSONDecodeError as e:
        logger.warning("Corrupt state file %s: %s — starting fresh", path, e)
        return StackState()
    except (OSError, ValidationError) as e:
        logger.warning("Cannot load state from %s: %s — starting fresh", path, e)
        return StackState()


def save_state(state: StackState, path: Path) -> None:
    """Save stack state to a JSON file (atomic write)."""
    state.touch()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = state.model_dump(mode="json")
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    _fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".state_", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with open(_fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        tmp.replace(path)
        logger.debug("State saved to %s", path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        logger.error("Failed to save state to %s: %s", path, e)
        raise
