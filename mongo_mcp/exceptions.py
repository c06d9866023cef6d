"""Error kinds for the MongoDB MCP server.

Every failure that can reach the protocol layer is classified into one of a
small set of tagged kinds so the request pipeline can render it uniformly.
"""

from enum import Enum

from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import ConnectionFailure, PyMongoError


class ErrorKind(str, Enum):
    """Tag carried by every server error."""

    VALIDATION = "validation"
    CONNECTION = "connection"
    OPERATION = "operation"
    PROTOCOL = "protocol"


class MongoMCPError(Exception):
    """Base exception for all MongoDB MCP server errors."""

    kind: ErrorKind = ErrorKind.OPERATION

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class ValidationError(MongoMCPError):
    """Raised for bad collection names, unknown tools or malformed arguments."""

    kind = ErrorKind.VALIDATION


class StoreConnectionError(MongoMCPError):
    """Raised when the store is unreachable or the handshake fails."""

    kind = ErrorKind.CONNECTION


class OperationError(MongoMCPError):
    """Raised when a store call fails on an established connection.

    Attributes:
        operation: Short name of the store operation that failed.
    """

    kind = ErrorKind.OPERATION

    def __init__(self, operation: str, reason: str):
        super().__init__(message=reason, code="OPERATION_FAILED")
        self.operation = operation


class ProtocolError(MongoMCPError):
    """Raised when an inbound message does not have a valid JSON-RPC shape.

    Attributes:
        rpc_code: JSON-RPC error code to answer with.
    """

    kind = ErrorKind.PROTOCOL

    def __init__(self, message: str, rpc_code: int = -32600):
        super().__init__(message=message, code="PROTOCOL_ERROR")
        self.rpc_code = rpc_code


def _describe_pydantic_error(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "arguments"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "Invalid arguments: " + "; ".join(parts)


def as_mcp_error(exc: BaseException) -> MongoMCPError:
    """Classify any exception into a tagged server error.

    Args:
        exc: The exception raised somewhere in request handling.

    Returns:
        The exception itself when it is already a server error, otherwise a
        wrapping error of the matching kind.
    """
    if isinstance(exc, MongoMCPError):
        return exc
    if isinstance(exc, PydanticValidationError):
        return ValidationError(_describe_pydantic_error(exc), code="INVALID_ARGUMENTS")
    if isinstance(exc, ConnectionFailure):
        return StoreConnectionError(str(exc), code="STORE_UNAVAILABLE")
    if isinstance(exc, PyMongoError):
        return OperationError("unknown", str(exc))
    return OperationError("unknown", str(exc) or exc.__class__.__name__)


def error_text(exc: BaseException) -> str:
    """Human-readable message used inside error envelopes."""
    return as_mcp_error(exc).message
