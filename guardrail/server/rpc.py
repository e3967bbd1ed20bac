"""JSON-RPC server over stdin/stdout."""

import asyncio
import json
import sys
from typing import Any, Awaitable, Callable

from loguru import logger
from pydantic import ValidationError

from guardrail import __version__
from guardrail.exec.types import ExecConfig, PolicyConfig
from guardrail.server.tools import BASH_TOOL_NAME, bash_tool_definition, handle_bash_call

SERVER_NAME = "mcp-server/guardrail"
DEFAULT_PROTOCOL_VERSION = "2024-11-05"
MAX_LINE_BYTES = 16 * 1024 * 1024

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class RpcError(Exception):
    """An error returned to the client as a JSON-RPC error object."""

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class StdioServer:
    """
    Line-oriented JSON-RPC server exposing the Bash tool.

    Each line on the input stream is one message. Requests are handled as
    independent tasks so a slow command does not stall the others; each
    response is written as a single line.
    """

    def __init__(
        self,
        policy: PolicyConfig,
        exec_config: ExecConfig | None = None,
    ):
        self.policy = policy
        self.exec_config = exec_config or ExecConfig()
        self._write_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()
        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[Any]]] = {
            "initialize": self._handle_initialize,
            "ping": self._handle_ping,
            "tools/list": self._handle_list_tools,
            "tools/call": self._handle_call_tool,
            "resources/list": self._handle_list_resources,
        }

    async def _handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        return {
            "protocolVersion": params.get("protocolVersion") or DEFAULT_PROTOCOL_VERSION,
            "capabilities": {"tools": {}, "resources": {}},
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        }

    async def _handle_ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _handle_list_tools(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": [bash_tool_definition(self.exec_config)]}

    async def _handle_list_resources(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"resources": []}

    async def _handle_call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if name != BASH_TOOL_NAME:
            raise RpcError(INVALID_PARAMS, f"Unknown tool: {name}")

        try:
            return await handle_bash_call(params.get("arguments"), self.policy, self.exec_config)
        except ValidationError as e:
            logger.error(f"Bash command validation error: {e}")
            raise RpcError(INVALID_PARAMS, f"Invalid arguments for {BASH_TOOL_NAME}: {e}")

    async def handle_message(self, message: Any) -> dict[str, Any] | None:
        """
        Dispatch one decoded message.

        Returns the response object, or None for notifications.
        """
        if not isinstance(message, dict) or not isinstance(message.get("method"), str):
            request_id = message.get("id") if isinstance(message, dict) else None
            return _error_response(request_id, INVALID_REQUEST, "Invalid request")

        method = message["method"]
        is_notification = "id" not in message
        request_id = message.get("id")
        params = message.get("params") or {}

        handler = self._handlers.get(method)
        if handler is None:
            if is_notification:
                logger.debug(f"Ignoring notification: {method}")
                return None
            return _error_response(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        if not isinstance(params, dict):
            return _error_response(request_id, INVALID_PARAMS, "Params must be an object")

        try:
            result = await handler(params)
        except RpcError as e:
            return None if is_notification else _error_response(request_id, e.code, e.message)
        except Exception as e:
            logger.exception(f"Error handling {method}")
            return None if is_notification else _error_response(request_id, INTERNAL_ERROR, str(e))

        if is_notification:
            return None
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    async def handle_line(self, line: str) -> dict[str, Any] | None:
        """Decode one input line and dispatch it."""
        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse message: {e}")
            return _error_response(None, PARSE_ERROR, "Parse error")

        return await self.handle_message(message)

    async def _process(self, line: str, writer: Callable[[str], Awaitable[None]]) -> None:
        response = await self.handle_line(line)
        if response is not None:
            await writer(json.dumps(response))

    async def serve(
        self,
        reader: asyncio.StreamReader,
        writer: Callable[[str], Awaitable[None]],
    ) -> None:
        """Read lines until EOF, then wait for in-flight requests."""
        async def write_line(text: str) -> None:
            async with self._write_lock:
                await writer(text)

        while True:
            try:
                raw = await reader.readline()
            except (ValueError, asyncio.LimitOverrunError) as e:
                logger.warning(f"Dropping oversized message: {e}")
                await write_line(json.dumps(_error_response(None, PARSE_ERROR, "Message too long")))
                continue
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").strip()
            if not line:
                continue
            task = asyncio.create_task(self._process(line, write_line))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.info("Input closed, server stopping")

    async def run_stdio(self) -> None:
        """Serve on the process's stdin and stdout."""
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=MAX_LINE_BYTES)
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)

        async def write_stdout(text: str) -> None:
            sys.stdout.write(text + "\n")
            sys.stdout.flush()

        logger.info("Server started successfully")
        await self.serve(reader, write_stdout)


def _error_response(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": code, "message": message},
    }
