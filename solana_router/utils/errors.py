"""
Error types for the Solana query router.

Every failure the pipeline knows how to describe is a subclass of
``RouterError``. Each error carries a stable ``ErrorCode``, an HTTP status
for the API layer and a details mapping, and converts to the ``kind`` string
used by failed tool results.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Error codes for the Solana router."""

    # General errors
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"

    # Classification and network errors
    CLASSIFICATION_INDETERMINATE = "CLASSIFICATION_INDETERMINATE"
    RPC_ERROR = "RPC_ERROR"
    ENDPOINT_POOL_EXHAUSTED = "ENDPOINT_POOL_EXHAUSTED"

    # Tool errors
    TOOL_VALIDATION_ERROR = "TOOL_VALIDATION_ERROR"
    UNKNOWN_TOOL = "UNKNOWN_TOOL"
    TOOL_EXECUTION_ERROR = "TOOL_EXECUTION_ERROR"

    # Collaborators
    UPSTREAM_SERVICE_ERROR = "UPSTREAM_SERVICE_ERROR"


class RouterError(Exception):
    """Base exception for all Solana router errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize a new router error.

        Args:
            message: Error message
            code: Error code
            status_code: HTTP status code
            details: Additional error details
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    @property
    def kind(self) -> str:
        """Snake-case error kind used in failed tool results."""
        return self.code.value.lower()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the error to a dictionary.

        Returns:
            Dictionary representation of the error
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details
        }


class ConfigurationError(RouterError):
    """Exception for invalid configuration values."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code=ErrorCode.CONFIGURATION_ERROR,
            status_code=500,
            details=details
        )


class InvalidInputError(RouterError):
    """Malformed address, signature or query, rejected before any network call."""

    def __init__(self, message: str, value: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        error_details = dict(details or {})
        if value is not None:
            error_details["value"] = value
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_INPUT,
            status_code=400,
            details=error_details
        )


class ClassificationIndeterminate(RouterError):
    """Network-backed classification failed; the terminal result is ``unknown``."""

    def __init__(self, address: str, reason: str):
        super().__init__(
            message=f"Could not classify {address}: {reason}",
            code=ErrorCode.CLASSIFICATION_INDETERMINATE,
            status_code=503,
            details={"address": address, "reason": reason}
        )


class RpcError(RouterError):
    """JSON-RPC level error returned by a Solana endpoint."""

    def __init__(self, message: str, error_data: Optional[Dict[str, Any]] = None):
        self.error_data = error_data or {}
        super().__init__(
            message=message,
            code=ErrorCode.RPC_ERROR,
            status_code=502,
            details={"rpc_error": self.error_data}
        )


class EndpointPoolExhausted(RouterError):
    """Every endpoint in the pool failed for one operation."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        reason = str(last_error) if last_error is not None else "no endpoints configured"
        super().__init__(
            message=f"All {attempts} endpoint attempts failed: {reason}",
            code=ErrorCode.ENDPOINT_POOL_EXHAUSTED,
            status_code=503,
            details={
                "attempts": attempts,
                "last_error": reason,
                "last_error_type": type(last_error).__name__ if last_error is not None else None
            }
        )


class ToolValidationError(RouterError):
    """Missing or invalid tool arguments."""

    def __init__(self, tool_name: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.tool_name = tool_name
        error_details = dict(details or {})
        error_details["tool"] = tool_name
        super().__init__(
            message=message,
            code=ErrorCode.TOOL_VALIDATION_ERROR,
            status_code=422,
            details=error_details
        )


class UnknownToolError(RouterError):
    """The dispatcher received a name outside the catalogue."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(
            message=f"Unknown tool: {tool_name}",
            code=ErrorCode.UNKNOWN_TOOL,
            status_code=500,
            details={"tool": tool_name}
        )


class UpstreamServiceError(RouterError):
    """The model service or the knowledge search is unavailable."""

    def __init__(self, service: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.service = service
        error_details = dict(details or {})
        error_details["service"] = service
        super().__init__(
            message=f"{service} unavailable: {message}",
            code=ErrorCode.UPSTREAM_SERVICE_ERROR,
            status_code=503,
            details=error_details
        )


def error_kind(exc: BaseException) -> str:
    """Map any exception to the ``kind`` string of a failed tool result."""
    if isinstance(exc, RouterError):
        return exc.kind
    return ErrorCode.TOOL_EXECUTION_ERROR.value.lower()
