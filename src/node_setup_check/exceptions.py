"""Hard-failure exceptions for node setup checks."""

from __future__ import annotations


class CheckAborted(RuntimeError):
    """Environment state the checker cannot reason about.

    Raising this stops the run. Records collected so far are still printed
    before the message, so partial progress is not lost.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidModeError(CheckAborted):
    """Permission mode outside the 9-bit ``rwxrwxrwx`` range."""


class MissingCorrelationInputError(CheckAborted):
    """Cross-file correlation requested without both parsed configs."""
