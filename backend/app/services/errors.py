"""
Exception hierarchy for the boolean-operations engine.

The engine raises these internally when it is handed input it cannot
interpret.  The orchestrator in ``boolean_ops`` converts every exception
into a failed :class:`~.boolean_ops.BooleanOperationResult`, so callers
of the public API never see them directly.
"""


class BooleanOperationError(Exception):
    """Base boolean-operations exception"""


class InvalidPathError(BooleanOperationError):
    """Raised when a path contains a command the engine cannot interpret"""


class InvalidConfigError(BooleanOperationError):
    """Raised when a configuration value is out of range"""
