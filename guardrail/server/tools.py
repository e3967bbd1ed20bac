"""The Bash tool exposed over RPC."""

from typing import Any

from pydantic import BaseModel, Field

from guardrail.exec.policy import run_request
from guardrail.exec.types import CommandRequest, ExecConfig, PolicyConfig

BASH_TOOL_NAME = "Bash"


class BashInput(BaseModel):
    """Arguments accepted by the Bash tool."""
    command: str
    timeout: int | None = Field(default=None, ge=0)  # milliseconds


def bash_tool_definition(exec_config: ExecConfig) -> dict[str, Any]:
    """Tool definition in MCP ``tools/list`` format."""
    return {
        "name": BASH_TOOL_NAME,
        "description": "Execute the specified command",
        "inputSchema": {
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "description": "Command to execute",
                },
                "timeout": {
                    "type": "number",
                    "description": f"Optional timeout (milliseconds, max {exec_config.max_timeout_ms})",
                },
            },
            "required": ["command"],
        },
    }


async def handle_bash_call(
    arguments: Any,
    policy: PolicyConfig,
    exec_config: ExecConfig,
) -> dict[str, Any]:
    """
    Validate Bash tool arguments, then authorize and run the command.

    Raises:
        pydantic.ValidationError: If the arguments are malformed.
    """
    params = BashInput.model_validate(arguments if arguments is not None else {})
    request = CommandRequest(command=params.command, timeout=params.timeout)
    result = await run_request(request, policy, exec_config)
    return result.to_content()
