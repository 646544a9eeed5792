"""Exception hierarchy and the closed error taxonomy shown to the user."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class CalculatorError(Exception):
    """Base class for calculator errors."""
    pass


class LexerError(CalculatorError):
    """Raised for errors during tokenization."""
    pass


class ParseError(CalculatorError):
    """Raised for parsing errors with optional position information."""
    pass


class EvalError(CalculatorError):
    """Raised for errors during evaluation, e.g. unknown names."""
    pass


class ErrorKind(Enum):
    """User-facing error categories. The values are the display labels."""

    INVALID_FORMAT = "Invalid format"
    INVALID_INPUT = "Invalid input"
    DIVIDE_BY_ZERO = "Can't divide by zero"
    OVERFLOW = "Value too large"
    GENERIC = "Error"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, text: str) -> Optional["ErrorKind"]:
        for kind in cls:
            if kind.value == text:
                return kind
        return None
