# ==============================
# Engine Errors
# ==============================
"""
Exceptions raised inside the engine.

Rules:
- Engine code raises; component.py converts to RenderErrorInfo (errors become data
  at the boundary).
- Every error is fatal for the current call. Nothing is retried internally.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from stencil.contracts.render_schema import RenderErrorInfo, RenderErrorKind


def line_col(source: str, position: int) -> Tuple[int, int]:
    """1-based (line, column) of a 0-based offset."""
    before = source[:position]
    line = before.count("\n") + 1
    column = position - (before.rfind("\n") + 1) + 1
    return line, column


# ==============================
# Template Errors
# ==============================
class TemplateError(Exception):
    """Base class for template parse/render failures."""

    kind: RenderErrorKind

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_error(self) -> RenderErrorInfo:
        return RenderErrorInfo(kind=self.kind, message=self.message)


class ParseError(TemplateError):
    kind = RenderErrorKind.PARSE_ERROR

    def __init__(self, message: str, *, position: int, source: str = "") -> None:
        self.position = position
        self.line, self.column = line_col(source, position)
        super().__init__(f"{message} (line {self.line}, column {self.column})")

    def to_error(self) -> RenderErrorInfo:
        return RenderErrorInfo(
            kind=self.kind,
            message=self.message,
            position=self.position,
            line=self.line,
            column=self.column,
        )


class UnsupportedHelper(ParseError):
    kind = RenderErrorKind.UNSUPPORTED_HELPER

    def __init__(self, name: str, *, position: int, source: str = "") -> None:
        self.name = name
        super().__init__(f"Unsupported block helper '{name}'", position=position, source=source)

    def to_error(self) -> RenderErrorInfo:
        info = super().to_error()
        return info.model_copy(update={"name": self.name})


class MissingIdentifier(TemplateError):
    kind = RenderErrorKind.MISSING_IDENTIFIER

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Missing identifier: {path}")

    def to_error(self) -> RenderErrorInfo:
        return RenderErrorInfo(kind=self.kind, message=self.message, path=self.path)


class TypeMismatch(TemplateError):
    kind = RenderErrorKind.TYPE_MISMATCH

    def __init__(self, path: str, *, expected: str, actual: str) -> None:
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(f"Type mismatch at '{path}': expected {expected}, got {actual}")

    def to_error(self) -> RenderErrorInfo:
        return RenderErrorInfo(
            kind=self.kind,
            message=self.message,
            path=self.path,
            expected=self.expected,
            actual=self.actual,
        )


# ==============================
# Invocation Errors
# ==============================
class InvocationError(Exception):
    """Base class for failures before rendering starts (bad input, scope, operation)."""

    kind: RenderErrorKind

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_error(self) -> RenderErrorInfo:
        return RenderErrorInfo(kind=self.kind, message=self.message, details=self.details)


class InvalidInput(InvocationError):
    kind = RenderErrorKind.INVALID_INPUT


class InvalidScope(InvocationError):
    kind = RenderErrorKind.INVALID_SCOPE


class UnsupportedOperation(InvocationError):
    kind = RenderErrorKind.UNSUPPORTED_OPERATION

    def __init__(self, operation: str, *, supported: str) -> None:
        super().__init__(
            f"Unsupported operation '{operation}'; supported: {supported}",
            details={"operation": operation, "supported": supported},
        )
