"""RPC server exposing the Bash tool."""

from guardrail.server.rpc import StdioServer, RpcError
from guardrail.server.tools import BashInput, bash_tool_definition, handle_bash_call

__all__ = ["StdioServer", "RpcError", "BashInput", "bash_tool_definition", "handle_bash_call"]
