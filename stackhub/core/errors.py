"""
Error types raised by the resolution engine.

Hard stops are exceptions; recoverable per-item problems (unknown
template variable, chmod failure, ambiguous providers) are logged or
collected into error lists instead. The CLI catches ``StackhubError``.
"""

from __future__ import annotations


class StackhubError(Exception):
    """Base class for deployment-fatal errors."""


class RequirementError(StackhubError):
    """A mandatory requirement is not provided or its prerequisite failed."""


class ProvideValidationError(StackhubError):
    """A component provides a capability without the outputs it implies."""


class ExpansionError(StackhubError):
    """A resolved value still contains a placeholder.

    Expansion must be idempotent by the time outputs are expanded; a
    second-order reference means components were resolved out of order.
    """


class TemplateError(StackhubError):
    """Template inputs cannot be read or template globs cannot be expanded.

    ``errors`` keeps the individual diagnostics.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []
