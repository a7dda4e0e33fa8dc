"""Exceptions for failed system calls and unexpected null results."""

from __future__ import annotations

import os
from typing import TypeVar

T = TypeVar("T")


class TaggedError(OSError):
    """An error code from some category, tagged with the operation that was attempted."""

    def __init__(self, attempt: str, error_code: int, message: str) -> None:
        super().__init__(error_code, message)
        self.attempt = attempt
        self.error_code = error_code
        self.message = message

    def __str__(self) -> str:
        return f"{self.attempt}: {self.message}"


class UnixError(TaggedError):
    """A failed operating-system call, described by its errno value."""

    def __init__(self, attempt: str, error_code: int) -> None:
        super().__init__(attempt, error_code, os.strerror(error_code))


def check_system_call(attempt: str, return_value: int) -> int:
    """Return a non-negative result unchanged; a negative one carries the negated errno."""
    if return_value >= 0:
        return return_value
    raise UnixError(attempt, -return_value)


def notnull(context: str, value: T | None) -> T:
    """Return ``value``, or raise if it is ``None``."""
    if value is None:
        raise RuntimeError(f"{context}: returned null pointer")
    return value