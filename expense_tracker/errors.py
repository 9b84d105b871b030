# expense_tracker/errors.py
from __future__ import annotations


class ExpenseTrackerError(Exception):
    """Base class for every error raised by the expense core."""


class InvalidInput(ExpenseTrackerError, ValueError):
    """An amount, category, limit or month failed validation."""


class NotFound(ExpenseTrackerError, KeyError):
    def __str__(self) -> str:
        # KeyError quotes its argument; show the plain message instead.
        return str(self.args[0]) if self.args else ""


class CorruptData(ExpenseTrackerError, ValueError):
    """A persisted line (or the metadata file) could not be parsed."""

    def __init__(self, reason: str, line_number: int | None = None, line: str | None = None):
        self.reason = reason
        self.line_number = line_number
        self.line = line
        if line_number is None:
            message = reason
        else:
            message = f"line {line_number}: {reason} ({line!r})"
        super().__init__(message)


class PersistenceError(ExpenseTrackerError, OSError):
    """Reading or writing the data file failed."""
