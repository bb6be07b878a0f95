"""Exceptions raised by the table engine."""


class TableSmithError(Exception):
    """Base class for all TableSmith errors."""
    pass


class InvalidOperationError(TableSmithError):
    """Raised when an edit cannot be applied to the current table.

    The table is left unchanged whenever this is raised.
    """
    pass


class HistoryUnderflowError(TableSmithError):
    """Raised when undo/redo is requested with an empty stack."""
    pass


class TableParseError(TableSmithError):
    """Raised when Markdown text does not contain a pipe table."""
    pass


class UnknownCommandError(TableSmithError):
    """Raised for an inbound command name with no matching operation."""
    pass


class InvalidCommandError(TableSmithError):
    """Raised when an inbound command payload fails validation."""
    pass
