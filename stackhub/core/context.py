"""
Run context — per-run state of one resolution pass.

Everything that used to be process-wide lives here instead: the
``force`` flag, the memo of already verified requirement terms and the
set of warnings already emitted. Entry points create one context per
run and pass it down:

    - CLI:   main.py → RunContext(force=..., project_root=...)
    - Tests: RunContext() per test

Not thread-safe. Components are resolved sequentially; a parallel
runner must shard contexts per worker.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# (known, error); see services/prerequisites
CheckFn = Callable[[str, "RunContext"], "tuple[bool, str | None]"]


@dataclass
class RunContext:
    """Flags and memo caches for one deployment run."""

    project_root: Optional[Path] = None
    force: bool = False

    # Requirement terms whose prerequisite check already passed
    verified_requirements: set[str] = field(default_factory=set)

    # Formatted messages already emitted by warn_once()
    warned: set[str] = field(default_factory=set)

    # Prerequisite checker; None means the built-in one
    checker: Optional[CheckFn] = None

    def warn_once(self, msg: str, *args: object, log: logging.Logger | None = None) -> None:
        """Log a warning unless the same formatted message was already logged."""
        text = msg % args if args else msg
        if text in self.warned:
            return
        self.warned.add(text)
        (log or logger).warning(text)

    def check_require(self, term: str) -> tuple[bool, str | None]:
        """Run the configured prerequisite checker for ``term``."""
        if self.checker is not None:
            return self.checker(term, self)
        from stackhub.core.services.prerequisites import check_require

        return check_require(term, self)
