"""Domain-specific errors for bridgegen."""

from __future__ import annotations


class BridgeGenError(Exception):
    """Base error for bridgegen."""


class SignatureParseError(BridgeGenError):
    """Raised when a function declaration or type cannot be parsed."""

    def __init__(self, message: str, *, line: int | None = None, column: int | None = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class ConfigError(BridgeGenError):
    """Raised when generator options are invalid."""


class ArgumentEncodeError(BridgeGenError):
    """Raised when call arguments cannot be encoded to MessagePack."""


class ResponseDecodeError(BridgeGenError):
    """Raised when a dispatched call result does not match the expected return type."""


class DispatchError(BridgeGenError):
    """Raised when the transport fails to deliver a call or the server reports an error."""


class BridgeCallError(BridgeGenError):
    """Raised by the convenience call path when the fallible call failed."""
