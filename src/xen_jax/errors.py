"""Structured error types for lexer/parser/runtime separation."""

from __future__ import annotations

from dataclasses import dataclass


class XenError(Exception):
    """Base class for structured xen-jax errors."""


@dataclass(frozen=True)
class XenLexError(XenError):
    """Source text could not be split into tokens."""

    message: str
    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.message} at span [{self.start}, {self.end})"


@dataclass(frozen=True)
class XenParseError(XenError):
    """Token stream does not form a valid program."""

    message: str
    start: int
    end: int
    expected: tuple[str, ...] = ()
    found: str | None = None

    def __str__(self) -> str:
        expected = ""
        if self.expected:
            expected = f"; expected {', '.join(self.expected)}"
        found = ""
        if self.found is not None:
            found = f"; found {self.found}"
        return f"{self.message} at span [{self.start}, {self.end}){expected}{found}"


class XenRuntimeError(XenError):
    """Generic runtime failure after successful parse."""


class XenArityError(XenRuntimeError):
    """Fewer arguments were supplied than the function requires."""


class XenTypeCoercionError(XenRuntimeError):
    """No dispatch case covers the given operand types."""

    def __init__(self, message: str, *values: object) -> None:
        super().__init__(message)
        self.message = message
        self.values = tuple(v for v in values if v is not None)

    def __str__(self) -> str:
        if not self.values:
            return self.message
        return f"{self.message}\n{given_values(*self.values)}"


class XenUndefinedNameError(XenRuntimeError):
    """Identifier or call target is not bound."""


class XenElementwiseSizeError(XenRuntimeError):
    """Two list operands of unequal length were combined pairwise."""


class XenDomainError(XenRuntimeError):
    """Value lies outside the domain of an operation (e.g. non-positive frequency)."""


class XenUnsupportedError(XenRuntimeError):
    """Feature exists in the language but is not supported by this runtime."""


def given_values(*values: object) -> str:
    """Render ``Given: v (type), ...`` for error messages."""
    from .values import display_type, format_value

    shown = ", ".join(f"{format_value(v)} ({display_type(v)})" for v in values if v is not None)
    return f"Given: {shown}"
