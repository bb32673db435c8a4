"""Shared error types for the protocol engine and its facades."""

from __future__ import annotations

from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Standard JSON-RPC 2.0 error codes."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


class TetherError(Exception):
    """Base error for all tether failures."""


class TransportError(TetherError):
    """Sending or receiving on the transport failed."""


class ConnectionClosedError(TetherError):
    """The transport ended before the operation could complete."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Connection closed" + (f": {detail}" if detail else ""))


class RequestTimeoutError(TetherError, TimeoutError):
    """No response arrived before the request's deadline."""

    def __init__(self, method: str, timeout: float) -> None:
        self.method = method
        self.timeout = timeout
        super().__init__(f"Request '{method}' timed out after {timeout}s")


class ProtocolError(TetherError):
    """An inbound frame is not a valid JSON-RPC message.

    ``request_id`` is set when the frame looked like a request and carried a
    usable id, so the peer can be answered with ``code``.
    """

    def __init__(
        self,
        message: str,
        *,
        code: int = ErrorCode.INVALID_REQUEST,
        request_id: int | str | None = None,
    ) -> None:
        self.code = code
        self.request_id = request_id
        super().__init__(message)


class ProtocolVersionError(TetherError):
    """The peer answered the handshake with an unsupported protocol version."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Unsupported protocol version: expected {expected}, got {actual}")


class RpcError(TetherError):
    """An error carried by a JSON-RPC error object.

    Raised by handlers to answer a request with a specific code, and raised
    by :meth:`tether.client.Client.request` when the peer answers with one.
    """

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"{code}: {message}")


class MethodNotFoundError(RpcError):
    """No handler is registered for the requested method."""

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(ErrorCode.METHOD_NOT_FOUND, f"Method not found: {method}")


class InvalidParamsError(RpcError):
    """The request's params do not match what the handler expects."""

    def __init__(self, detail: str, data: Any = None) -> None:
        super().__init__(ErrorCode.INVALID_PARAMS, f"Invalid params: {detail}", data)
