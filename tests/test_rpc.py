"""Tests for the JSON-RPC stdio server."""

import asyncio
import json

import pytest

from guardrail import __version__
from guardrail.exec.types import ExecConfig, PolicyConfig
from guardrail.server.rpc import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    StdioServer,
)


@pytest.fixture
def server() -> StdioServer:
    return StdioServer(PolicyConfig.build(["echo", "cat", "ls"], ["/tmp"]), ExecConfig())


def call(name: str, arguments, request_id="1") -> dict:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments},
    }


# ── Protocol methods ────────────────────────────────────────────────


class TestProtocol:
    @pytest.mark.asyncio
    async def test_initialize(self, server):
        response = await server.handle_message({
            "jsonrpc": "2.0", "id": 1, "method": "initialize",
            "params": {"protocolVersion": "2025-03-26"},
        })
        result = response["result"]
        assert result["protocolVersion"] == "2025-03-26"
        assert result["serverInfo"] == {"name": "mcp-server/guardrail", "version": __version__}
        assert "tools" in result["capabilities"]

    @pytest.mark.asyncio
    async def test_ping(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "id": 7, "method": "ping"})
        assert response == {"jsonrpc": "2.0", "id": 7, "result": {}}

    @pytest.mark.asyncio
    async def test_list_tools(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
        tools = response["result"]["tools"]
        assert [t["name"] for t in tools] == ["Bash"]
        assert tools[0]["inputSchema"]["required"] == ["command"]

    @pytest.mark.asyncio
    async def test_list_resources(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "id": 3, "method": "resources/list"})
        assert response["result"] == {"resources": []}

    @pytest.mark.asyncio
    async def test_notification_gets_no_response(self, server):
        message = {"jsonrpc": "2.0", "method": "notifications/initialized"}
        assert await server.handle_message(message) is None

    @pytest.mark.asyncio
    async def test_unknown_method(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "id": 4, "method": "nope"})
        assert response["error"]["code"] == METHOD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_parse_error(self, server):
        response = await server.handle_line("not json{{{")
        assert response["id"] is None
        assert response["error"]["code"] == PARSE_ERROR

    @pytest.mark.asyncio
    async def test_invalid_request(self, server):
        response = await server.handle_message([1, 2, 3])
        assert response["error"]["code"] == INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_params_must_be_object(self, server):
        response = await server.handle_message({
            "jsonrpc": "2.0", "id": 5, "method": "tools/call", "params": ["x"],
        })
        assert response["error"]["code"] == INVALID_PARAMS


# ── tools/call ──────────────────────────────────────────────────────


class TestCallTool:
    @pytest.mark.asyncio
    async def test_allowed_command(self, server):
        response = await server.handle_message(call("Bash", {"command": 'echo "Hello World"'}))
        result = response["result"]
        assert result["isError"] is False
        assert result["content"] == [{"type": "text", "text": "Hello World\n"}]

    @pytest.mark.asyncio
    async def test_disallowed_command(self, server):
        response = await server.handle_message(call("Bash", {"command": "rm -rf /"}))
        result = response["result"]
        assert result["isError"] is True
        text = result["content"][0]["text"]
        assert "not allowed: rm -rf /" in text
        assert "Allowed commands: cat, echo, ls" in text

    @pytest.mark.asyncio
    async def test_disallowed_path(self, server):
        response = await server.handle_message(call("Bash", {"command": "cat /etc/passwd"}))
        result = response["result"]
        assert result["isError"] is True
        assert "/etc/passwd" in result["content"][0]["text"]
        assert "Allowed paths: /tmp" in result["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, server):
        response = await server.handle_message(call("Python", {"command": "ls"}))
        assert response["error"]["code"] == INVALID_PARAMS
        assert "Unknown tool" in response["error"]["message"]

    @pytest.mark.asyncio
    async def test_missing_command(self, server):
        response = await server.handle_message(call("Bash", {"timeout": 100}))
        assert response["error"]["code"] == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_missing_arguments(self, server):
        response = await server.handle_message(call("Bash", None))
        assert response["error"]["code"] == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_negative_timeout(self, server):
        response = await server.handle_message(call("Bash", {"command": "ls", "timeout": -1}))
        assert response["error"]["code"] == INVALID_PARAMS


# ── serve loop ──────────────────────────────────────────────────────


class TestServe:
    @pytest.mark.asyncio
    async def test_serves_until_eof(self, server):
        reader = asyncio.StreamReader()
        lines = [
            json.dumps({"jsonrpc": "2.0", "id": 1, "method": "ping"}),
            "",
            json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
            json.dumps(call("Bash", {"command": "rm -rf /"}, request_id=2)),
        ]
        reader.feed_data(("\n".join(lines) + "\n").encode())
        reader.feed_eof()

        written: list[str] = []

        async def writer(text: str) -> None:
            written.append(text)

        await server.serve(reader, writer)

        responses = {r["id"]: r for r in map(json.loads, written)}
        assert set(responses) == {1, 2}
        assert responses[1]["result"] == {}
        assert responses[2]["result"]["isError"] is True

    @pytest.mark.asyncio
    async def test_oversized_line_does_not_stop_server(self, server):
        reader = asyncio.StreamReader(limit=64)
        oversized = json.dumps({"jsonrpc": "2.0", "id": 9, "method": "ping", "params": {"pad": "x" * 200}})
        ping = json.dumps({"jsonrpc": "2.0", "id": 1, "method": "ping"})
        reader.feed_data(f"{oversized}\n{ping}\n".encode())
        reader.feed_eof()

        written: list[str] = []

        async def writer(text: str) -> None:
            written.append(text)

        await server.serve(reader, writer)

        responses = [json.loads(text) for text in written]
        errors = [r for r in responses if "error" in r]
        assert len(errors) == 1
        assert errors[0]["id"] is None
        assert errors[0]["error"]["code"] == PARSE_ERROR
        assert {"jsonrpc": "2.0", "id": 1, "result": {}} in responses
