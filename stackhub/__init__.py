"""stackhub — requires/provides resolution and templating for component stacks."""

__version__ = "0.1.0"
