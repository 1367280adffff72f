"""Exception hierarchy for the MCP server.

Exception Hierarchy:
    MCPError (base)
    └── MCPProtocolError - JSON-RPC protocol errors, carries the error code
        ├── ParseError - Invalid JSON (-32700)
        ├── InvalidRequestError - Not a valid request object (-32600)
        ├── MethodNotFoundError - Unknown method (-32601)
        └── InvalidParamsError - Bad or missing params (-32602)

Tool failures are never raised as protocol errors; they are returned as
tool results flagged ``isError``.
"""

from __future__ import annotations

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class MCPError(Exception):
    """Base exception for all MCP-related errors."""

    pass


class MCPProtocolError(MCPError):
    """JSON-RPC protocol error.

    Attributes:
        code: JSON-RPC error code sent back to the client.
    """

    code = INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_error(self) -> dict:
        return {"code": self.code, "message": self.message}


class ParseError(MCPProtocolError):
    code = PARSE_ERROR


class InvalidRequestError(MCPProtocolError):
    code = INVALID_REQUEST


class MethodNotFoundError(MCPProtocolError):
    code = METHOD_NOT_FOUND

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method not found: {method}")


class InvalidParamsError(MCPProtocolError):
    code = INVALID_PARAMS
