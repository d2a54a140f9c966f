"""
Exceptions raised by tokenlog.

Per-line problems are never raised on their own; they are reported as
ParseError values and only become ParseFailure in strict mode.
"""

from typing import Optional

from tokenlog.models import ParseError

__all__ = [
    'LogReadError',
    'ParseFailure',
    'InvalidArgument',
]


class LogReadError(IOError):
    """A log source could not be opened, read or decompressed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ParseFailure(ValueError):
    """A malformed line was met while skip_malformed was disabled."""

    def __init__(self, error: ParseError):
        super().__init__(f"Malformed entry at line {error.line_number}: {error.message}")
        self.error = error
        self.line_number = error.line_number
        self.raw = error.raw


class InvalidArgument(ValueError):
    """An argument was outside its valid range."""
