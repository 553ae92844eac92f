"""
Exceptions raised by MySQL Utils operations.

Each exception carries the result code reported to the user.
"""


class MysqlUtilsError(Exception):
    """Base class for errors that abort an operation."""

    status = 500


class PreconditionError(MysqlUtilsError):
    """A precondition was not met; nothing was modified."""

    status = 412


class MissingColumnError(PreconditionError):
    """A required column does not exist in a table."""


class InvalidTableNameError(PreconditionError):
    """A table name does not have the expected qualified shape."""


class StructureMismatchError(PreconditionError):
    """Two tables do not share the same column structure."""

    def __init__(
        self,
        message: str,
        added: list[str] = None,
        removed: list[str] = None,
        modified: list[str] = None
    ):
        super().__init__(message)
        self.added = added or []
        self.removed = removed or []
        self.modified = modified or []


class OutputError(MysqlUtilsError):
    """An output directory or file could not be created or opened."""

    status = 500
