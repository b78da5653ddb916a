from __future__ import annotations

from typing import Any


# ==================================================
# Fragment + Execution Errors
# ==================================================


class SqlStitchError(Exception):
    """
    Base type for errors raised by sqlstitch itself.
    Driver errors raised by the connection are never wrapped.
    """


class InvalidUsageError(SqlStitchError, TypeError):
    """
    Raised at fragment-construction time when a helper or template is given a malformed shape.
    """


class ArgumentBindingError(SqlStitchError):
    """
    Raised when an accessor cannot read its value from the supplied argument.
    """

    def __init__(self, position: int, original_exception: Exception) -> None:
        self.position = position
        self.original_exception = original_exception
        super().__init__(
            f"Could not bind placeholder ${position}: "
            f"{type(original_exception).__name__}: {original_exception}"
        )


class RowValidationError(SqlStitchError, TypeError):
    """
    Raised when a row validator rejects a returned row. The whole result is discarded.
    """

    def __init__(self, index: int, row: Any) -> None:
        self.index = index
        self.row = row
        super().__init__(f"Row {index} is invalid")
