"""Stdio MCP server.

Speaks newline-delimited JSON-RPC 2.0 over stdin/stdout: one JSON object
per line in each direction. stdout is reserved for protocol messages, so
all logging goes to stderr (see ``utils.logging_config``).

Example:
    >>> toolkit = TriageToolkit.from_settings(TriageSettings.from_env())
    >>> await MCPServer(toolkit).serve()
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, TextIO

import structlog

from autotriage import __version__
from autotriage.config.settings import TriageSettings
from autotriage.enums import OracleProviderType
from autotriage.mcp.exceptions import (
    INTERNAL_ERROR,
    InvalidParamsError,
    InvalidRequestError,
    MCPProtocolError,
    MethodNotFoundError,
    ParseError,
)
from autotriage.mcp.tools import TriageToolkit

log = structlog.get_logger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "autotriage"


def warn_missing_credentials(settings: TriageSettings) -> list[str]:
    """Log a warning per missing credential; the server still starts."""
    missing = []
    if settings.github.token is None:
        missing.append("github.token")
    if settings.oracle.provider_type == OracleProviderType.GEMINI and settings.oracle.api_key is None:
        missing.append("oracle.api_key")
    for name in missing:
        log.warning("credential_not_configured", setting=name)
    return missing


class MCPServer:
    """Dispatches JSON-RPC requests to a TriageToolkit."""

    def __init__(self, toolkit: TriageToolkit, name: str = SERVER_NAME, version: str = __version__):
        self.toolkit = toolkit
        self.name = name
        self.version = version
        self._methods = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "resources/list": self._resources_list,
            "resources/templates/list": self._resource_templates_list,
            "resources/read": self._resources_read,
            "prompts/list": self._prompts_list,
            "prompts/get": self._prompts_get,
        }

    async def serve(self, reader: asyncio.StreamReader | None = None, writer: TextIO | None = None) -> None:
        """Process requests until the input stream closes."""
        if reader is None:
            reader = await self._connect_stdin()
        writer = writer or sys.stdout

        log.info("mcp_server_started", name=self.name, version=self.version)
        try:
            while True:
                line = await reader.readline()
                if not line:
                    break
                response = await self.handle_line(line.decode("utf-8"))
                if response is not None:
                    writer.write(json.dumps(response, ensure_ascii=False) + "\n")
                    writer.flush()
        finally:
            await self.toolkit.close()
            log.info("mcp_server_stopped")

    @staticmethod
    async def _connect_stdin() -> asyncio.StreamReader:
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
        return reader

    async def handle_line(self, line: str) -> dict[str, Any] | None:
        if not line.strip():
            return None
        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            log.warning("mcp_invalid_json", error=str(e))
            return self._error_response(None, ParseError(f"Parse error: {e}"))
        return await self.handle_message(message)

    async def handle_message(self, message: Any) -> dict[str, Any] | None:
        """Handle one decoded JSON-RPC message.

        Returns:
            The response object, or None for notifications.
        """
        if not isinstance(message, dict) or message.get("jsonrpc") != "2.0" or "method" not in message:
            request_id = message.get("id") if isinstance(message, dict) else None
            return self._error_response(request_id, InvalidRequestError("Invalid Request"))

        method = message["method"]
        request_id = message.get("id")
        is_notification = "id" not in message
        params = message.get("params") or {}

        if is_notification:
            log.debug("mcp_notification", method=method)
            return None

        log.debug("mcp_request", method=method, id=request_id)
        try:
            handler = self._methods.get(method)
            if handler is None:
                raise MethodNotFoundError(method)
            if not isinstance(params, dict):
                raise InvalidParamsError("params must be an object")
            result = await handler(params)
        except MCPProtocolError as e:
            return self._error_response(request_id, e)
        except Exception as e:
            log.error("mcp_request_failed", method=method, error=str(e), exc_info=True)
            return {
                "jsonrpc": "2.0",
                "id": request_id,
                "error": {"code": INTERNAL_ERROR, "message": f"Internal error: {e}"},
            }
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    @staticmethod
    def _error_response(request_id: Any, error: MCPProtocolError) -> dict[str, Any]:
        return {"jsonrpc": "2.0", "id": request_id, "error": error.to_error()}

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        client = params.get("clientInfo", {})
        log.info("mcp_client_connected", client=client.get("name"), client_version=client.get("version"))
        return {
            "protocolVersion": params.get("protocolVersion", PROTOCOL_VERSION),
            "capabilities": {"tools": {}, "resources": {}, "prompts": {}},
            "serverInfo": {"name": self.name, "version": self.version},
        }

    async def _ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": self.toolkit.list_tools()}

    async def _tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParamsError("tools/call requires a tool name")
        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            raise InvalidParamsError("tool arguments must be an object")
        result = await self.toolkit.call_tool(name, arguments)
        return result.to_dict()

    async def _resources_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"resources": self.toolkit.list_resources()}

    async def _resource_templates_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"resourceTemplates": self.toolkit.list_resource_templates()}

    async def _resources_read(self, params: dict[str, Any]) -> dict[str, Any]:
        uri = params.get("uri")
        if not isinstance(uri, str):
            raise InvalidParamsError("resources/read requires a uri")
        return await self.toolkit.read_resource(uri)

    async def _prompts_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"prompts": self.toolkit.list_prompts()}

    async def _prompts_get(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            raise InvalidParamsError("prompts/get requires a prompt name")
        return self.toolkit.get_prompt(name, params.get("arguments"))
