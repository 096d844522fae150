"""Exceptions raised by the scheduler and its validation layer."""

from __future__ import annotations
from typing import Any


class FSRSError(Exception):
    """Base exception for the scheduler package."""


class CardValidationError(FSRSError, ValueError):
    """
    Raised when an external card record cannot be turned into a Card.

    Carries the offending field name and its raw value so callers can
    report exactly what was wrong.
    """

    def __init__(self, field: str, value: Any, message: str):
        super().__init__(message)
        self.field = field
        self.value = value


class SchedulingError(FSRSError):
    """Raised when a scheduling precondition is violated."""


class ParameterError(FSRSError, ValueError):
    """Raised when engine parameters are invalid."""
