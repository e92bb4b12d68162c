"""Custom exception hierarchy for the tool gateway.

All application-specific exceptions inherit from ToolkitError,
which carries an error code for RPC error frame mapping.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum


class ToolkitError(Exception):
    """Base exception for all tool gateway errors."""

    def __init__(self, message: str, *, code: str = "INTERNAL_ERROR") -> None:
        super().__init__(message)
        self.code = code


class GatewayError(ToolkitError):
    """Errors in the Gateway / WebSocket layer."""

    def __init__(self, message: str, *, code: str = "GATEWAY_ERROR") -> None:
        super().__init__(message, code=code)


class SessionError(ToolkitError):
    """Errors in session defaults handling."""

    def __init__(self, message: str, *, code: str = "SESSION_ERROR") -> None:
        super().__init__(message, code=code)


class ToolError(ToolkitError):
    """Errors during tool execution."""

    def __init__(self, message: str, *, code: str = "TOOL_ERROR") -> None:
        super().__init__(message, code=code)


class DiagnosticKind(StrEnum):
    """Why parameter resolution rejected a call."""

    missing_required = "MissingRequired"
    mutually_exclusive = "MutuallyExclusive"
    field_validation_failed = "FieldValidationFailed"


class ParameterError(ToolError):
    """Raised inside the resolution engine; never escapes resolve_parameters().

    fields lists the parameter names the diagnostic is about, in the order
    they should be reported.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: DiagnosticKind,
        fields: Sequence[str] = (),
    ) -> None:
        super().__init__(message, code=f"INVALID_PARAMS.{kind.value}")
        self.kind = kind
        self.fields = tuple(fields)
