"""
Error Types

Recoverable errors raised while building IR from text. Violated display
preconditions are not reported here: they are programmer errors and surface
as AssertionError.
"""

from typing import Optional


class IrdumpError(Exception):
    """Base exception for all irdump errors"""
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class ArenaMismatchError(IrdumpError):
    """An id was used to index an arena it does not belong to."""


class LoadError(IrdumpError):
    """
    Malformed module description.

    Carries the offending form (rendered back to text) and, when known, the
    file it came from.
    """
    def __init__(self, message: str, form: Optional[str] = None, file: Optional[str] = None):
        super().__init__(message)
        self.form = form
        self.file = file

    def __str__(self):
        where = f"{self.file}: " if self.file else ""
        if self.form is not None:
            return f"{where}{self.message}\n  in: {self.form}"
        return f"{where}{self.message}"
